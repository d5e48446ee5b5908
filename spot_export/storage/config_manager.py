"""
Manages loading and saving of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from spot_export.exceptions import ConfigurationError
from spot_export.models.config import ExportConfig

log = logging.getLogger(__name__)

CREDENTIALS_FILENAME = "credentials.json"


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    @property
    def config_dir(self) -> Path:
        return self.config_file_path.parent

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ExportConfig:
        """
        Loads configuration from the INI file (if present), applies CLI
        overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated ExportConfig object.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file: {e}"
                ) from e
            config_from_file = self._get_config_as_dict()
        else:
            log.debug(f"No configuration file at '{self.config_file_path}'.")

        if cli_options:
            config_from_file.update(cli_options)
        config_from_file.setdefault(
            "credentials_file", self.config_dir / CREDENTIALS_FILENAME
        )

        try:
            return ExportConfig(**config_from_file)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file containing every INI key.

        Args:
            settings: Values to store; other keys get their defaults.
        """
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}
        defaults = ExportConfig.model_construct()

        for key in sorted(ExportConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key, None))
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            elif value is None:
                config["DEFAULT"][key] = ""
            else:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        values: dict[str, Any] = {
            "username": section.get("username", ""),
            "helper_path": section.get("helper_path", ""),
            "output_dir": section.get("output_dir", "tracks"),
            "group_by_container": section.getboolean("group_by_container", False),
            "fetch_cover": section.getboolean("fetch_cover", True),
            "verify_ogg": section.getboolean("verify_ogg", False),
        }
        try:
            values["pacing_seconds"] = section.getfloat("pacing_seconds", 10.0)
        except ValueError as e:
            raise ConfigurationError(f"Invalid pacing_seconds: {e}") from e
        for key in ("credentials_file", "json_log_dir"):
            if raw := section.get(key, "").strip():
                values[key] = Path(raw).expanduser()
        return values
