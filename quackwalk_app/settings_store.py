from typing import Dict, Iterable

from PyQt6 import QtCore

from .core import APP_NAME, SETTINGS_ORGANIZATION


class SettingsManager:
    """
    Thin wrapper over QSettings with explicit typing helpers.
    """

    def __init__(self, organization: str = SETTINGS_ORGANIZATION, application: str = APP_NAME) -> None:
        self._settings = QtCore.QSettings(organization, application)

    @classmethod
    def from_file(cls, path: str) -> "SettingsManager":
        manager = cls.__new__(cls)
        manager._settings = QtCore.QSettings(path, QtCore.QSettings.Format.IniFormat)
        return manager

    def get_value(self, key: str, default=None, value_type=None):
        if value_type is None:
            return self._settings.value(key, defaultValue=default)
        return self._settings.value(key, defaultValue=default, type=value_type)

    def set_value(self, key: str, value) -> None:
        self._settings.setValue(key, value)

    def read_options(self, keys: Iterable[str]) -> Dict[str, object]:
        """
        Raw stored values for the given keys; keys that were never saved are left out.
        """
        return {key: self._settings.value(key) for key in keys if self._settings.contains(key)}

    def write_options(self, values: Dict[str, object]) -> None:
        for key, value in values.items():
            if value is None:
                self._settings.remove(key)
            else:
                self._settings.setValue(key, value)

    def clear(self) -> None:
        self._settings.clear()

    def sync(self) -> None:
        self._settings.sync()
