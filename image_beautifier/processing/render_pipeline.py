"""Sequential application of the beautifier stages to a source image."""

from __future__ import annotations

import logging
import time
import traceback
from dataclasses import dataclass
from typing import Iterable, List, Optional

from PIL import Image

from image_beautifier.core.errors import StageError, StageFailure
from image_beautifier.data.options import BeautifierOptions, RenderSnapshot

from .imaging import ensure_rgba, release_image
from .stages import DEFAULT_STAGES, TransformStage


LOGGER = logging.getLogger(__name__)


@dataclass
class RenderOutcome:
    """Result of :meth:`RenderPipeline.render`.

    Exactly one of ``image`` and ``failure`` is set. ``options`` is the
    snapshot the render was produced from.
    """

    options: BeautifierOptions
    image: Optional[Image.Image] = None
    failure: Optional[StageFailure] = None
    elapsed: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.failure is None and self.image is not None


class RenderPipeline:
    """Apply the enabled :class:`TransformStage` objects in their fixed order.

    The pipeline works on a private RGBA copy of the snapshot's source and
    never touches the source itself. Every stage produces a new image; the
    pipeline closes each intermediate as soon as the next one exists, so only
    the returned image survives a successful run and nothing survives a failed
    one.
    """

    def __init__(self, stages: Optional[Iterable[TransformStage]] = None) -> None:
        self.stages: List[TransformStage] = list(DEFAULT_STAGES if stages is None else stages)
        self._last_failure: Optional[StageFailure] = None

    def get_order(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def enabled_stages(self, options: BeautifierOptions) -> List[TransformStage]:
        return [stage for stage in self.stages if stage.is_enabled(options)]

    def last_failure(self) -> Optional[StageFailure]:
        """Return the failure recorded by the most recent run, if any."""

        return self._last_failure

    def execute(self, snapshot: RenderSnapshot) -> Image.Image:
        """Run the pipeline and return the rendered image.

        Raises
        ------
        StageError
            When a stage raises or produces an empty image.
        """

        options = snapshot.options
        self._last_failure = None
        current = ensure_rgba(snapshot.source)
        for stage in self.stages:
            if not stage.is_enabled(options):
                LOGGER.debug("Skipping disabled stage: %s", stage.name)
                continue
            result: Optional[Image.Image] = None
            try:
                result = stage.apply(current, options)
                if result.width == 0 or result.height == 0:
                    raise ValueError(f"stage produced an empty {result.width}x{result.height} image")
            except Exception as exc:
                if result is not None and result is not current:
                    release_image(result)
                release_image(current)
                failure = StageFailure(stage.name, exc, traceback.format_exc())
                self._last_failure = failure
                LOGGER.error(
                    "Render stage failed",
                    exc_info=exc,
                    extra={"component": "RenderPipeline", "stage": stage.name},
                )
                raise StageError(failure) from exc
            if result is not current:
                release_image(current)
            current = result
        return current

    def render(self, snapshot: RenderSnapshot) -> RenderOutcome:
        """Execute the pipeline, converting stage failures into an outcome."""

        started = time.perf_counter()
        try:
            image = self.execute(snapshot)
        except StageError as exc:
            return RenderOutcome(snapshot.options, failure=exc.failure, elapsed=time.perf_counter() - started)
        elapsed = time.perf_counter() - started
        LOGGER.debug(
            "Rendered %sx%s preview in %.3fs",
            image.width,
            image.height,
            elapsed,
            extra={"component": "RenderPipeline"},
        )
        return RenderOutcome(snapshot.options, image=image, elapsed=elapsed)


__all__ = ["RenderOutcome", "RenderPipeline"]
