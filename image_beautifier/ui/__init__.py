"""Qt integration for the render controller.

Widgets connect their value-changed signals with
:func:`~image_beautifier.ui.qt_bridge.connect_value_change` and listen to
:class:`~image_beautifier.ui.qt_bridge.QtPreviewSignals` for new previews.
"""

from .qt_bridge import QtDispatcher, QtPreviewSignals, connect_value_change, pil_to_qimage

__all__ = ["QtDispatcher", "QtPreviewSignals", "connect_value_change", "pil_to_qimage"]
