from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

import pytest

pytest.importorskip("PyQt5.QtCore")

from PIL import Image

from image_beautifier import AppConfiguration, AppCore
from image_beautifier.core.errors import LoadError
from image_beautifier.core.threading import QueuedDispatcher
from image_beautifier.data.options import BeautifierOptions


@pytest.fixture()
def config(tmp_path: Path) -> AppConfiguration:
    return AppConfiguration(
        log_directory=tmp_path / "logs",
        enable_console_logging=False,
        settings_file=tmp_path / "settings.ini",
    )


@pytest.fixture()
def app_core(config: AppConfiguration):
    root = logging.getLogger()
    saved_level = root.level
    core = AppCore(config)
    core.bootstrap()
    yield core
    core.shutdown()
    root.setLevel(saved_level)


def _wait_for_preview(session, dispatcher: QueuedDispatcher, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not session.controller.is_idle and time.monotonic() < deadline:
        dispatcher.run_pending(block=True, timeout=0.1)


def test_opening_before_bootstrap_raises(config: AppConfiguration) -> None:
    with pytest.raises(RuntimeError):
        AppCore(config).open_image(Image.new("RGBA", (2, 2)))


def test_bootstrap_configures_services(app_core: AppCore, config: AppConfiguration) -> None:
    assert app_core.settings is not None
    assert app_core.thread_controller is not None
    assert (config.log_directory / "image_beautifier.log").exists()


def test_session_renders_on_worker_and_remembers_options(app_core: AppCore, config: AppConfiguration) -> None:
    dispatcher = QueuedDispatcher()
    session = app_core.open_image(Image.new("RGBA", (20, 20), (0, 128, 0, 255)), dispatcher=dispatcher)
    assert session.options == BeautifierOptions()

    session.start()
    session.update_options(margin=4, padding=0, smart_padding=False, rounded_corner=0, shadow_size=0)
    _wait_for_preview(session, dispatcher)

    assert session.preview is not None
    assert session.preview.size == (28, 28)

    app_core.close_session(session)

    assert session.closed
    assert app_core.stored_options().margin == 4


def test_open_file_propagates_load_error(app_core: AppCore, tmp_path: Path) -> None:
    with pytest.raises(LoadError):
        app_core.open_file(tmp_path / "absent.png")


def test_explicit_options_override_stored_ones(app_core: AppCore) -> None:
    session = app_core.open_image(Image.new("RGBA", (2, 2)), options=BeautifierOptions(margin=1))

    assert session.options.margin == 1


def test_remember_options_disabled_uses_defaults(tmp_path: Path, config: AppConfiguration) -> None:
    config.remember_options = False
    core = AppCore(config)

    assert core.stored_options() == BeautifierOptions()


def test_session_without_dispatcher_completes_on_owner_thread(app_core: AppCore) -> None:
    session = app_core.open_image(Image.new("RGBA", (6, 6), (0, 0, 255, 255)), options=BeautifierOptions(margin=1))
    listener_threads = []
    session.controller.add_preview_listener(lambda _image: listener_threads.append(threading.current_thread()))

    assert isinstance(session.dispatcher, QueuedDispatcher)

    session.start()
    _wait_for_preview(session, session.dispatcher)

    assert session.preview is not None
    assert listener_threads == [threading.current_thread()]
