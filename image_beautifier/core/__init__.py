"""Core services: errors, logging, settings, threading and sessions.

``AppCore`` and ``BeautifierSession`` live in :mod:`.app_core` and
:mod:`.session`; they depend on the processing package and are imported from
there directly.
"""
from .errors import BeautifierError, DisposalError, LoadError, StageError, StageFailure
from .logging_config import LoggingConfigurator, LoggingOptions
from .threading import InlineDispatcher, QueuedDispatcher, ThreadController

__all__ = [
    "BeautifierError",
    "DisposalError",
    "InlineDispatcher",
    "LoadError",
    "LoggingConfigurator",
    "LoggingOptions",
    "QueuedDispatcher",
    "StageError",
    "StageFailure",
    "ThreadController",
]
