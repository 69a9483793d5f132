"""
Reads, writes and upgrades the optional INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from wallgrab.exceptions import ConfigurationError
from wallgrab.models.config import GrabConfig

log = logging.getLogger(__name__)

SECTION = "DEFAULT"


class ConfigManager:
    """
    Settings are resolved as defaults < INI file < command line. Without a
    file every setting keeps its default value.
    """

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> GrabConfig:
        """
        Builds the effective configuration.

        Raises:
            ConfigurationError: The file cannot be parsed or a value is invalid.
        """
        settings: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Cannot parse {self.config_file_path}: {e}"
                ) from e
            if self._add_missing_keys():
                log.info(f"[yellow]Added new settings to {self.config_file_path}[/yellow]")
            settings = self._read_section()

        settings.update(cli_options or {})
        try:
            return GrabConfig(
                **settings, config_path=str(self.config_file_path.parent)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """Writes a complete file from the defaults, overlaid with settings."""
        values = GrabConfig().model_dump(include=GrabConfig.get_ini_keys())
        values.update(settings or {})

        parser = configparser.ConfigParser(interpolation=None)
        parser[SECTION] = {key: self._to_ini(values[key]) for key in sorted(values)}
        self._write(parser)

    def _write(self, parser: configparser.ConfigParser) -> None:
        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as f:
                parser.write(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot write {self.config_file_path}: {e}"
            ) from e

    @staticmethod
    def _to_ini(value: Any) -> str:
        if isinstance(value, bool):
            return str(value).lower()
        return "" if value is None else str(value)

    def _read_section(self) -> dict[str, Any]:
        """Converts each known key according to the type of its field."""
        section = self._parser[SECTION]
        getters = {int: section.getint, bool: section.getboolean}
        settings: dict[str, Any] = {}
        for key in GrabConfig.get_ini_keys():
            if key not in section:
                continue
            getter = getters.get(GrabConfig.model_fields[key].annotation, section.get)
            try:
                settings[key] = getter(key)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for '{key}': {e}") from e
        return settings

    def _add_missing_keys(self) -> bool:
        """Adds settings introduced since the file was written."""
        section = self._parser[SECTION]
        defaults = GrabConfig().model_dump(include=GrabConfig.get_ini_keys())
        missing = sorted(key for key in defaults if key not in section)
        for key in missing:
            section[key] = self._to_ini(defaults[key])
            log.debug(f"config: added '{key} = {section[key]}'")
        if not missing:
            return False
        try:
            self._write(self._parser)
        except ConfigurationError as e:
            log.error(f"Config upgrade not saved: {e}")
            return False
        return True
