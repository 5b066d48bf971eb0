"""Qt glue for the render controller.

:class:`QtDispatcher` marshals render completions from worker threads onto
the thread that owns it (normally the GUI thread) through a queued signal.
:class:`QtPreviewSignals` re-emits controller notifications as Qt signals so
widgets can connect to them without knowing about the controller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from PIL import Image
from PyQt5 import QtCore, QtGui  # type: ignore

from image_beautifier.core.errors import StageFailure
from image_beautifier.processing.render_controller import RenderController


LOGGER = logging.getLogger(__name__)


class QtDispatcher(QtCore.QObject):
    """Run posted callables on the thread this object lives in."""

    _invoke = QtCore.pyqtSignal(object)

    def __init__(self, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._invoke.connect(self._run, type=QtCore.Qt.QueuedConnection)

    def __call__(self, fn: Callable[[], None]) -> None:
        self._invoke.emit(fn)

    @QtCore.pyqtSlot(object)
    def _run(self, fn: Callable[[], None]) -> None:
        fn()


def pil_to_qimage(image: Image.Image) -> QtGui.QImage:
    """Convert an RGBA Pillow image into a detached :class:`QImage`."""

    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    data = rgba.tobytes("raw", "RGBA")
    qimage = QtGui.QImage(data, rgba.width, rgba.height, 4 * rgba.width, QtGui.QImage.Format_RGBA8888)
    # QImage borrows ``data``; copy so the buffer can be freed.
    return qimage.copy()


class QtPreviewSignals(QtCore.QObject):
    """Expose :class:`RenderController` notifications as Qt signals."""

    previewUpdated = QtCore.pyqtSignal(object)
    previewImageUpdated = QtCore.pyqtSignal(QtGui.QImage)
    renderFailed = QtCore.pyqtSignal(str, str)

    def __init__(self, controller: RenderController, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._controller = controller
        controller.add_preview_listener(self._on_preview)
        controller.add_failure_listener(self._on_failure)

    def detach(self) -> None:
        self._controller.remove_preview_listener(self._on_preview)
        self._controller.remove_failure_listener(self._on_failure)

    def _on_preview(self, image: Image.Image) -> None:
        self.previewUpdated.emit(image)
        self.previewImageUpdated.emit(pil_to_qimage(image))

    def _on_failure(self, failure: StageFailure) -> None:
        LOGGER.debug("Forwarding render failure from stage %s", failure.stage_name)
        self.renderFailed.emit(failure.stage_name, str(failure.exception))


def connect_value_change(signal: Any, controller: RenderController, apply: Callable[[Any], None]) -> None:
    """Connect a widget value signal so each change updates and re-renders.

    ``apply`` stores the new value (for example on a
    :class:`~image_beautifier.data.options.ParameterStore`); the controller is
    then asked for an update.
    """

    def _handler(value: Any) -> None:
        apply(value)
        controller.request_update()

    signal.connect(_handler)


__all__ = ["QtDispatcher", "QtPreviewSignals", "connect_value_change", "pil_to_qimage"]
