"""Application core bootstrap handling logging, settings and threading."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from PIL import Image

from image_beautifier.data.options import BeautifierOptions
from image_beautifier.processing.render_controller import Dispatcher

from .logging_config import LoggingConfigurator, LoggingOptions
from .session import BeautifierSession
from .settings_manager import SettingsManager
from .threading import QueuedDispatcher, ThreadController


@dataclass
class AppConfiguration:
    """Configuration for the application bootstrap."""

    organization: str = "ImageBeautifier"
    application: str = "ImageBeautifier"
    log_directory: Optional[Path] = None
    developer_diagnostics: bool = False
    enable_console_logging: bool = True
    enable_file_logging: bool = True
    max_log_bytes: int = 2 * 1024 * 1024
    log_backup_count: int = 3
    settings_file: Optional[Path] = None
    render_workers: int = 1
    remember_options: bool = True


class AppCore:
    """Bootstraps shared services and opens beautifier sessions."""

    def __init__(self, config: Optional[AppConfiguration] = None) -> None:
        self.config = config or AppConfiguration()
        self.logger = logging.getLogger(__name__)
        self.logging_configurator: Optional[LoggingConfigurator] = None
        self.settings: Optional[SettingsManager] = None
        self.thread_controller: Optional[ThreadController] = None
        self._sessions: List[BeautifierSession] = []
        self._bootstrapped = False

    def bootstrap(self) -> None:
        if self._bootstrapped:
            return
        self._init_logging()
        self._init_settings()
        self.thread_controller = ThreadController(max_workers=self.config.render_workers)
        self._bootstrapped = True
        self.logger.info("Application core bootstrapped", extra={"component": "AppCore"})

    def _init_logging(self) -> None:
        options = LoggingOptions(
            log_directory=self.config.log_directory,
            developer_diagnostics=self.config.developer_diagnostics,
            enable_console=self.config.enable_console_logging,
            enable_file=self.config.enable_file_logging,
            max_bytes=self.config.max_log_bytes,
            backup_count=self.config.log_backup_count,
        )
        self.logging_configurator = LoggingConfigurator(options)
        self.logging_configurator.configure()

    def _init_settings(self) -> None:
        self.settings = SettingsManager(
            self.config.organization,
            self.config.application,
            settings_file=self.config.settings_file,
        )

    def _require_bootstrap(self) -> ThreadController:
        if not self._bootstrapped or self.thread_controller is None:
            raise RuntimeError("AppCore.bootstrap() must be called before opening sessions")
        return self.thread_controller

    def stored_options(self) -> BeautifierOptions:
        if self.settings is None or not self.config.remember_options:
            return BeautifierOptions()
        return self.settings.load_options()

    def open_image(
        self,
        image: Image.Image,
        *,
        options: Optional[BeautifierOptions] = None,
        dispatcher: Optional[Dispatcher] = None,
        **kwargs: Any,
    ) -> BeautifierSession:
        """Open a session on an in-memory image using stored options by default.

        Without an explicit ``dispatcher`` the session gets a
        :class:`QueuedDispatcher`; the owning thread drains it with
        ``session.dispatcher.run_pending()``.
        """

        executor = self._require_bootstrap()
        session = BeautifierSession.from_image(
            image,
            executor,
            options=options if options is not None else self.stored_options(),
            dispatcher=dispatcher if dispatcher is not None else QueuedDispatcher(),
            **kwargs,
        )
        self._sessions.append(session)
        return session

    def open_file(
        self,
        path: Path | str,
        *,
        options: Optional[BeautifierOptions] = None,
        dispatcher: Optional[Dispatcher] = None,
        **kwargs: Any,
    ) -> BeautifierSession:
        """Open a session on ``path``; :class:`LoadError` propagates to the caller."""

        executor = self._require_bootstrap()
        session = BeautifierSession.from_file(
            path,
            executor,
            options=options if options is not None else self.stored_options(),
            dispatcher=dispatcher if dispatcher is not None else QueuedDispatcher(),
            **kwargs,
        )
        self._sessions.append(session)
        return session

    def close_session(self, session: BeautifierSession) -> None:
        """Remember the session's options and close it."""

        if self.settings is not None and self.config.remember_options and not session.closed:
            self.settings.save_options(session.options)
        session.close()
        if session in self._sessions:
            self._sessions.remove(session)

    def shutdown(self) -> None:
        for session in list(self._sessions):
            self.close_session(session)
        if self.thread_controller is not None:
            self.thread_controller.shutdown(wait=True)
            self.thread_controller = None
        self.logger.info("Application core shutdown", extra={"component": "AppCore"})
        if self.logging_configurator is not None:
            self.logging_configurator.shutdown()
        self._bootstrapped = False
