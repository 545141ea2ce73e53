"""
Manages loading, validation, and saving of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from coursera_scraper.exceptions import ConfigurationError
from coursera_scraper.models.config import DEFAULT_DOWNLOAD_TIMEOUT, ScraperConfig

log = logging.getLogger(__name__)


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = Path(config_file_path)
        self._parser = configparser.ConfigParser(interpolation=None)

    def read(self) -> dict[str, Any]:
        """
        Reads the stored settings without validating them.

        A missing file is not an error; every setting then has its default.
        """
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file: {e}"
                ) from e
        else:
            log.debug(f"No configuration file at '{self.config_file_path}'.")
        return self._get_config_as_dict()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ScraperConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated ScraperConfig object.

        Raises:
            ConfigurationError: If the config file cannot be parsed or validation
            fails.
        """
        config_from_file = self.read()

        if cli_options:
            config_from_file.update(cli_options)

        try:
            config_dir = self.config_file_path.parent
            return ScraperConfig(**config_from_file, config_path=str(config_dir))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_settings(self, settings: dict[str, Any]) -> None:
        """
        Merges ``settings`` into the stored configuration and writes it back.

        Only keys known to the INI file are written; anything else is ignored.
        """
        stored = self.read()
        ini_keys = ScraperConfig.get_ini_keys()
        stored.update({k: v for k, v in settings.items() if k in ini_keys})

        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}
        for key in sorted(ini_keys):
            value = stored.get(key)
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            elif value is not None:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e
        log.debug(f"Saved configuration to '{self.config_file_path}'.")

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        try:
            return {
                "cauth": section.get("cauth", ""),
                "course_id": section.get("course_id", ""),
                "output_dir": section.get("output_dir", "."),
                "max_workers": section.getint("max_workers", 8),
                "download_timeout": section.getfloat(
                    "download_timeout", DEFAULT_DOWNLOAD_TIMEOUT
                ),
                "sanitize_names": section.getboolean("sanitize_names", True),
                "fail_fast": section.getboolean("fail_fast", True),
                "log_dir": section.get("log_dir", ""),
            }
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e
