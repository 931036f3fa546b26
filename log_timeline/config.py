"""Settings: built-in defaults, an optional YAML file, environment overrides."""

import copy
import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV = "LOG_TIMELINE_CONFIG"
LOG_LEVEL_ENV = "LOG_TIMELINE_LOG_LEVEL"


def merge_dicts(base: dict, override: dict) -> dict:
    """Copy of base with override applied; nested dicts merge key by key."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merged[key] = merge_dicts(existing, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class Config:
    """Layered settings: DEFAULTS, then the YAML file, then overrides.

    With ``environ`` given, LOG_TIMELINE_CONFIG names the file when no path
    is passed and LOG_TIMELINE_LOG_LEVEL overrides ``logging.level``.
    """

    DEFAULTS = {
        "parser": {
            "export_timestamp_field": "exportedTimestamp",
            "server_module": "server",
        },
        "display": {
            "mark_class": "bg-yellow-200",
            "page_size": 50,
        },
        "upload": {
            "accepted_extensions": [".json", ".txt", ".log"],
            "max_entries": 10,
            "max_file_size": 100_000_000,
        },
        "logging": {
            "level": "INFO",
        },
    }

    def __init__(self, config_path=None, overrides=None, environ=None):
        environ = environ or {}
        path = config_path or environ.get(CONFIG_ENV)

        layers = [self._read_yaml(path) if path else {}, overrides or {}]
        if environ.get(LOG_LEVEL_ENV):
            layers.append({"logging": {"level": environ[LOG_LEVEL_ENV]}})

        self._config = copy.deepcopy(self.DEFAULTS)
        for layer in layers:
            self._config = merge_dicts(self._config, layer)

    @staticmethod
    def _read_yaml(path) -> dict:
        """File contents as a dict; {} (with a warning) if unusable."""
        try:
            with open(path, "r") as f:
                loaded = yaml.safe_load(f)
        except FileNotFoundError:
            logger.warning("Config file %s not found, using defaults", path)
            return {}
        except yaml.YAMLError:
            logger.warning("Invalid YAML in %s, using defaults", path)
            return {}
        if not isinstance(loaded, dict):
            return {}
        return loaded

    def __getitem__(self, section):
        return self._config[section]

    @property
    def parser(self) -> "ParserConfig":
        return ParserConfig.from_dict(self._config["parser"])

    @property
    def display(self) -> "DisplayConfig":
        return DisplayConfig.from_dict(self._config["display"])

    @property
    def upload(self) -> "UploadConfig":
        return UploadConfig.from_dict(self._config["upload"])

    @property
    def log_level(self) -> str:
        return str(self._config["logging"]["level"]).upper()


@dataclass(frozen=True)
class ParserConfig:
    export_timestamp_field: str = "exportedTimestamp"
    server_module: str = "server"

    @classmethod
    def from_dict(cls, d: dict) -> "ParserConfig":
        return cls(
            export_timestamp_field=d.get("export_timestamp_field", "exportedTimestamp"),
            server_module=d.get("server_module", "server"),
        )


@dataclass(frozen=True)
class DisplayConfig:
    mark_class: str = "bg-yellow-200"
    page_size: int = 50

    @classmethod
    def from_dict(cls, d: dict) -> "DisplayConfig":
        return cls(
            mark_class=d.get("mark_class", "bg-yellow-200"),
            page_size=int(d.get("page_size", 50)),
        )


@dataclass(frozen=True)
class UploadConfig:
    accepted_extensions: tuple = (".json", ".txt", ".log")
    max_entries: int = 10
    max_file_size: int = 100_000_000

    @classmethod
    def from_dict(cls, d: dict) -> "UploadConfig":
        return cls(
            accepted_extensions=tuple(
                ext.lower() for ext in d.get("accepted_extensions", [".json", ".txt", ".log"])
            ),
            max_entries=int(d.get("max_entries", 10)),
            max_file_size=int(d.get("max_file_size", 100_000_000)),
        )

    def accepts(self, filename: str) -> bool:
        """True if the file extension is one the viewer ingests."""
        return os.path.splitext(filename)[1].lower() in self.accepted_extensions


def load_config(config_path: str | None = None) -> Config:
    """Config for the running process: explicit path, else the environment."""
    return Config(config_path, environ=os.environ)
