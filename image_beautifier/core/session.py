"""A beautifier editing session: one source image, its options and preview."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from PIL import Image

from image_beautifier.data.image_io import load_image_record, save_image
from image_beautifier.data.options import BeautifierOptions, ParameterStore
from image_beautifier.processing.imaging import ensure_rgba, release_image
from image_beautifier.processing.render_controller import Dispatcher, RenderController
from image_beautifier.processing.render_pipeline import RenderPipeline

from .threading import InlineDispatcher, TaskExecutor


LOGGER = logging.getLogger(__name__)

ImageHandler = Callable[[Image.Image], None]


class BeautifierSession:
    """Owns the source image, the parameter store and the render controller.

    Sessions are created with :meth:`from_image` or :meth:`from_file` and
    become interactive once :meth:`start` has been called. Until then
    :meth:`~image_beautifier.processing.render_controller.RenderController.request_update`
    calls are ignored, mirroring a dialog that is still being laid out.

    ``dispatcher`` delivers render completions to the owning thread. The
    inline default is only correct for executors that complete on the caller;
    threaded executors need a :class:`~image_beautifier.core.threading.QueuedDispatcher`
    or :class:`~image_beautifier.ui.qt_bridge.QtDispatcher`.
    """

    def __init__(
        self,
        source: Image.Image,
        executor: TaskExecutor,
        *,
        options: Optional[BeautifierOptions] = None,
        dispatcher: Optional[Dispatcher] = None,
        pipeline: Optional[RenderPipeline] = None,
        file_path: Optional[Path] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.source_image = source
        self.file_path = file_path
        self.metadata: Dict[str, Any] = dict(metadata or {})
        self.store = ParameterStore(source, options)
        self.pipeline = pipeline or RenderPipeline()
        self.dispatcher: Dispatcher = dispatcher or InlineDispatcher()
        self.controller = RenderController(self.store, self.pipeline, executor, dispatcher=self.dispatcher)
        self._upload_handlers: List[ImageHandler] = []
        self._print_handlers: List[ImageHandler] = []
        self._closed = False

    @classmethod
    def from_image(cls, image: Image.Image, executor: TaskExecutor, **kwargs: Any) -> "BeautifierSession":
        """Open a session on a private RGBA copy of ``image``."""

        return cls(ensure_rgba(image), executor, **kwargs)

    @classmethod
    def from_file(cls, path: Path | str, executor: TaskExecutor, **kwargs: Any) -> "BeautifierSession":
        """Open a session on the image stored at ``path``.

        Raises :class:`~image_beautifier.core.errors.LoadError` when the file
        cannot be decoded; no session is created in that case.
        """

        record = load_image_record(path)
        return cls(record.image, executor, file_path=record.path, metadata=record.metadata, **kwargs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Mark the session ready and render the initial preview."""

        self.controller.mark_ready()
        self.controller.request_update()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.controller.close()
        release_image(self.source_image)
        self._upload_handlers.clear()
        self._print_handlers.clear()
        LOGGER.info("Session closed", extra={"component": "BeautifierSession"})

    def __enter__(self) -> "BeautifierSession":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def options(self) -> BeautifierOptions:
        return self.store.options

    @property
    def preview(self) -> Optional[Image.Image]:
        return self.controller.current_preview()

    def update_options(self, **changes: Any) -> None:
        """Apply option changes and request a new preview."""

        self.store.update(**changes)
        self.controller.request_update()

    # ------------------------------------------------------------------
    # Preview actions
    # ------------------------------------------------------------------
    def save(self) -> Optional[Path]:
        """Overwrite the file the session was opened from with the preview."""

        preview = self.preview
        if preview is None or self.file_path is None:
            return None
        return save_image(preview, self.file_path, metadata=self.metadata)

    def save_as(self, path: Path | str, format: Optional[str] = None) -> Optional[Path]:
        """Write the preview to ``path`` and make it the session's file."""

        preview = self.preview
        if preview is None:
            return None
        written = save_image(preview, path, format)
        self.file_path = written
        return written

    def add_upload_handler(self, handler: ImageHandler) -> None:
        if handler not in self._upload_handlers:
            self._upload_handlers.append(handler)

    def add_print_handler(self, handler: ImageHandler) -> None:
        if handler not in self._print_handlers:
            self._print_handlers.append(handler)

    def request_upload(self) -> bool:
        return self._hand_off(self._upload_handlers, "upload")

    def request_print(self) -> bool:
        return self._hand_off(self._print_handlers, "print")

    def _hand_off(self, handlers: List[ImageHandler], action: str) -> bool:
        preview = self.preview
        if preview is None:
            LOGGER.debug("No preview available for %s", action)
            return False
        for handler in list(handlers):
            handler(preview)
        return True


__all__ = ["BeautifierSession", "ImageHandler"]
