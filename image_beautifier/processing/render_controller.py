"""Single-flight, latest-wins scheduling of preview renders.

The controller is driven from one interactive thread. Parameter changes call
:meth:`RenderController.request_update`; at most one render runs on the
background executor at a time, and any number of requests arriving while it
runs collapse into a single follow-up render taken from a fresh snapshot.
Render completions are handed back to the interactive thread through a
dispatcher callable before any controller state is touched.
"""

from __future__ import annotations

import concurrent.futures
import logging
import traceback
from typing import Callable, List, Optional

from PIL import Image

from image_beautifier.core.errors import StageFailure
from image_beautifier.core.threading import InlineDispatcher, TaskExecutor
from image_beautifier.data.options import BeautifierOptions, ParameterStore

from .imaging import release_image
from .render_pipeline import RenderOutcome, RenderPipeline


LOGGER = logging.getLogger(__name__)

Dispatcher = Callable[[Callable[[], None]], None]
PreviewListener = Callable[[Image.Image], None]
FailureListener = Callable[[StageFailure], None]


class RenderController:
    """Coalesce preview update requests into serial pipeline executions."""

    def __init__(
        self,
        store: ParameterStore,
        pipeline: RenderPipeline,
        executor: TaskExecutor,
        *,
        dispatcher: Optional[Dispatcher] = None,
    ) -> None:
        self._store = store
        self._pipeline = pipeline
        self._executor = executor
        self._dispatch: Dispatcher = dispatcher or InlineDispatcher()

        self._ready = False
        self._busy = False
        self._pending = False
        self._draining = False
        self._closed = False

        self._preview: Optional[Image.Image] = None
        self._preview_options: Optional[BeautifierOptions] = None
        self._last_failure: Optional[StageFailure] = None
        self._render_count = 0

        self._preview_listeners: List[PreviewListener] = []
        self._failure_listeners: List[FailureListener] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def is_pending(self) -> bool:
        return self._pending

    @property
    def is_idle(self) -> bool:
        return not (self._busy or self._pending)

    @property
    def render_count(self) -> int:
        """Number of renders started since the controller was created."""

        return self._render_count

    def current_preview(self) -> Optional[Image.Image]:
        """Return the most recently published preview, if any."""

        return self._preview

    def preview_options(self) -> Optional[BeautifierOptions]:
        """Return a copy of the options the current preview was rendered with."""

        return None if self._preview_options is None else self._preview_options.copy()

    def last_failure(self) -> Optional[StageFailure]:
        return self._last_failure

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_preview_listener(self, callback: PreviewListener) -> None:
        if callback not in self._preview_listeners:
            self._preview_listeners.append(callback)

    def remove_preview_listener(self, callback: PreviewListener) -> None:
        if callback in self._preview_listeners:
            self._preview_listeners.remove(callback)

    def add_failure_listener(self, callback: FailureListener) -> None:
        if callback not in self._failure_listeners:
            self._failure_listeners.append(callback)

    def remove_failure_listener(self, callback: FailureListener) -> None:
        if callback in self._failure_listeners:
            self._failure_listeners.remove(callback)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def mark_ready(self) -> None:
        """Accept update requests from now on. Earlier requests were ignored."""

        if self._closed:
            raise RuntimeError("RenderController has been closed")
        self._ready = True

    def request_update(self) -> None:
        """Ask for the preview to reflect the current parameters.

        Never blocks. While a render is running the request only marks the
        controller as pending; repeated calls do not queue additional renders.
        """

        if not self._ready:
            LOGGER.debug("Update requested before the session is ready; ignored")
            return
        self._pending = True
        if self._busy:
            return
        self._drain()

    def _drain(self) -> None:
        # Completions delivered synchronously re-enter here; the outer call's
        # loop picks up the pending flag instead of recursing.
        if self._draining:
            return
        self._draining = True
        try:
            while self._pending and not self._busy and self._ready:
                self._pending = False
                self._start_render()
        finally:
            self._draining = False

    def _start_render(self) -> None:
        self._busy = True
        snapshot = self._store.snapshot()
        self._render_count += 1
        generation = self._render_count
        LOGGER.debug("Starting render #%s", generation, extra={"component": "RenderController"})

        def _on_done(future: concurrent.futures.Future) -> None:
            self._dispatch(lambda: self._on_render_done(future, generation))

        try:
            self._executor.submit(self._pipeline.render, snapshot, callback=_on_done)
        except Exception:
            self._busy = False
            raise

    def _on_render_done(self, future: concurrent.futures.Future, generation: int) -> None:
        outcome = self._collect_outcome(future)
        if self._closed:
            if outcome is not None:
                release_image(outcome.image)
            self._busy = False
            LOGGER.debug("Discarding render #%s completed after close", generation)
            return

        if outcome is None:
            LOGGER.info("Render #%s was cancelled", generation, extra={"component": "RenderController"})
        elif outcome.failure is not None:
            self._report_failure(outcome.failure)
        elif outcome.image is not None:
            self._publish(outcome.image, outcome.options)
        else:
            LOGGER.warning("Render #%s produced neither image nor failure", generation)

        self._busy = False
        self._drain()

    def _collect_outcome(self, future: concurrent.futures.Future) -> Optional[RenderOutcome]:
        if future.cancelled():
            return None
        exc = future.exception()
        if exc is None:
            return future.result()
        # RenderPipeline.render converts stage errors; anything else is a bug in
        # the pipeline driver and is surfaced the same way.
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        LOGGER.error("Render task raised", exc_info=exc, extra={"component": "RenderController"})
        return RenderOutcome(self._store.options, failure=StageFailure("pipeline", exc, trace))

    def _publish(self, image: Image.Image, options: BeautifierOptions) -> None:
        previous = self._preview
        self._preview = image
        self._preview_options = options
        self._last_failure = None
        if previous is not None and previous is not image:
            release_image(previous)
        LOGGER.info(
            "Preview updated",
            extra={"component": "RenderController", "size": image.size},
        )
        for callback in list(self._preview_listeners):
            try:
                callback(self._preview)
            except Exception:
                LOGGER.exception("Preview listener raised", extra={"component": "RenderController"})

    def _report_failure(self, failure: StageFailure) -> None:
        self._last_failure = failure
        LOGGER.warning(
            "Render failed in stage '%s'; keeping previous preview",
            failure.stage_name,
            extra={"component": "RenderController"},
        )
        for callback in list(self._failure_listeners):
            try:
                callback(failure)
            except Exception:
                LOGGER.exception("Failure listener raised", extra={"component": "RenderController"})

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Stop accepting requests and release the current preview.

        A render still in flight completes on the executor; its result is
        released as soon as it is delivered.
        """

        self._closed = True
        self._ready = False
        self._pending = False
        release_image(self._preview)
        self._preview = None
        self._preview_options = None
        self._preview_listeners.clear()
        self._failure_listeners.clear()


__all__ = ["Dispatcher", "FailureListener", "PreviewListener", "RenderController"]
