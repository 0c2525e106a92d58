"""config_store.py
Persistent key-value storage for user selections (channel roles).
"""
from __future__ import annotations

from typing import Dict, Optional, Union

from PyQt5 import QtCore  # type: ignore

Value = Union[int, str]


class ConfigStore:
    """Named integer/string values that survive process restarts."""

    def has(self, name: str) -> bool:
        raise NotImplementedError

    def get_int(self, name: str, default: int = 0) -> int:
        raise NotImplementedError

    def set_int(self, name: str, value: int) -> None:
        raise NotImplementedError

    def get_str(self, name: str, default: str = "") -> str:
        raise NotImplementedError

    def set_str(self, name: str, value: str) -> None:
        raise NotImplementedError


class MemoryConfigStore(ConfigStore):
    """Dictionary backed store, handy for tests and headless runs."""

    def __init__(self, values: Optional[Dict[str, Value]] = None):
        self.values: Dict[str, Value] = dict(values or {})

    def has(self, name: str) -> bool:
        return name in self.values

    def get_int(self, name: str, default: int = 0) -> int:
        return int(self.values.get(name, default))

    def set_int(self, name: str, value: int) -> None:
        self.values[name] = int(value)

    def get_str(self, name: str, default: str = "") -> str:
        return str(self.values.get(name, default))

    def set_str(self, name: str, value: str) -> None:
        self.values[name] = str(value)


class QSettingsConfigStore(ConfigStore):
    """Store backed by :class:`QtCore.QSettings`.

    Pass ``path`` to keep the settings in an explicit INI file, otherwise the
    platform's native location for ``organization``/``application`` is used.
    """

    def __init__(self, organization: str = "FETSweep", application: str = "fet_sweep",
                 path: Optional[str] = None):
        if path is not None:
            self.settings = QtCore.QSettings(str(path), QtCore.QSettings.IniFormat)
        else:
            self.settings = QtCore.QSettings(organization, application)

    def has(self, name: str) -> bool:
        return self.settings.contains(name)

    def get_int(self, name: str, default: int = 0) -> int:
        return int(self.settings.value(name, default, type=int))

    def set_int(self, name: str, value: int) -> None:
        self.settings.setValue(name, int(value))

    def get_str(self, name: str, default: str = "") -> str:
        return str(self.settings.value(name, default, type=str))

    def set_str(self, name: str, value: str) -> None:
        self.settings.setValue(name, str(value))

    def sync(self) -> None:
        self.settings.sync()
