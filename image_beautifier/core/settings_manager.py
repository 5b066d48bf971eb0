"""Settings manager built on top of QSettings with JSON import/export support."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from PyQt5.QtCore import QSettings  # type: ignore

from image_beautifier.data.options import BeautifierOptions


LOGGER = logging.getLogger(__name__)

OPTIONS_KEY = "beautifier/options"


class SettingsManager:
    """High level interface around QSettings supporting JSON serialisation.

    When ``settings_file`` is given the values live in that INI file,
    otherwise the platform's native store for ``organization``/``application``
    is used.
    """

    def __init__(self, organization: str, application: str, *, settings_file: Optional[Path] = None) -> None:
        if settings_file is not None:
            self._settings = QSettings(str(settings_file), QSettings.IniFormat)
        else:
            self._settings = QSettings(organization, application)
        self.organization = organization
        self.application = application

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._settings.value(key, default)

    def set(self, key: str, value: Any) -> None:
        self._settings.setValue(key, value)
        self._settings.sync()

    def remove(self, key: str) -> None:
        self._settings.remove(key)
        self._settings.sync()

    def clear(self) -> None:
        self._settings.clear()
        self._settings.sync()

    def contains(self, key: str) -> bool:
        return bool(self._settings.contains(key))

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key in self._all_keys():
            result[key] = self._settings.value(key)
        return result

    def from_dict(self, values: Dict[str, Any], *, clear: bool = False) -> None:
        if clear:
            self.clear()
        for key, value in values.items():
            self._settings.setValue(key, value)
        self._settings.sync()

    @property
    def backend(self) -> QSettings:
        """Return the underlying :class:`QSettings` object."""

        return self._settings

    def export_json(self, path: Path) -> None:
        path = Path(path)
        data = self.to_dict()
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)

    def import_json(self, path: Path, *, clear: bool = False) -> None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(path)
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError("Settings JSON must describe an object")
        self.from_dict(data, clear=clear)

    # ------------------------------------------------------------------
    # Beautifier options
    # ------------------------------------------------------------------
    def save_options(self, options: BeautifierOptions) -> None:
        """Persist ``options`` as a JSON document under :data:`OPTIONS_KEY`."""

        self.set(OPTIONS_KEY, json.dumps(options.to_dict(), sort_keys=True))

    def load_options(self) -> BeautifierOptions:
        """Return the stored options, or defaults when none are stored or readable."""

        raw = self.get(OPTIONS_KEY)
        if not raw:
            return BeautifierOptions()
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("stored options are not an object")
            return BeautifierOptions.from_dict(data)
        except (TypeError, ValueError, KeyError) as exc:
            LOGGER.warning(
                "Ignoring unreadable stored options: %s",
                exc,
                extra={"component": "SettingsManager"},
            )
            return BeautifierOptions()

    def _all_keys(self) -> List[str]:
        return [str(key) for key in self._settings.allKeys()]
