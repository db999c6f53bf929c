"""Configuration for health contributor assembly.

Values come from, in increasing precedence: defaults, an ``actuator.json``
/ ``actuator.yaml`` file, and ``ACTUATOR_*`` environment variables.

Environment Variables:
    ACTUATOR_LOG_LEVEL: Root level of the actuator loggers.
    ACTUATOR_SHOW_DETAILS: Whether composite health reports indicator details.
    ACTUATOR_STATUS_ORDER: Comma-separated status codes, most severe first.
    ACTUATOR_ALLOW_REFLECTIVE_FACTORY: Whether configurations without an
        indicator factory may build indicators reflectively.

Example:
    >>> config = ActuatorConfig.load()
    >>> StatusAggregator.from_config(config).order
    ('DOWN', 'OUT_OF_SERVICE', 'UP', 'UNKNOWN')
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Self

from actuator.exceptions import ConfigurationError, InvalidConfigValueError
from actuator.logging import LogLevel


DEFAULT_ENV_PREFIX = "ACTUATOR"
CONFIG_FILE_NAMES = ("actuator.json", "actuator.yaml", "actuator.yml")

# Every health status code, most severe first.
DEFAULT_STATUS_ORDER = ("DOWN", "OUT_OF_SERVICE", "UP", "UNKNOWN")


class EnvReader:
    """Reads ``<prefix>_<NAME>`` environment variables."""

    def __init__(self, prefix: str = DEFAULT_ENV_PREFIX) -> None:
        self.prefix = prefix

    def key(self, name: str) -> str:
        return f"{self.prefix}_{name}" if self.prefix else name

    def get(self, name: str) -> str | None:
        return os.environ.get(self.key(name))

    def get_bool(self, name: str) -> bool | None:
        """Parse 1/0, true/false, yes/no or on/off; None when unset.

        Raises:
            InvalidConfigValueError: For any other value.
        """
        value = self.get(name)
        if value is None:
            return None
        if value.lower() in ("1", "true", "yes", "on"):
            return True
        if value.lower() in ("0", "false", "no", "off"):
            return False
        raise InvalidConfigValueError(
            f"Invalid boolean value for {self.key(name)}",
            config_key=self.key(name),
            value=value,
            expected="one of 1/0, true/false, yes/no, on/off",
        )

    def get_list(self, name: str) -> list[str] | None:
        """Split a comma-separated value; None when unset."""
        value = self.get(name)
        if value is None:
            return None
        return [item.strip() for item in value.split(",") if item.strip()]

    def overrides(self) -> dict[str, Any]:
        """Collect the ActuatorConfig fields set in the environment."""
        found = {
            "log_level": self.get("LOG_LEVEL"),
            "show_details": self.get_bool("SHOW_DETAILS"),
            "status_order": self.get_list("STATUS_ORDER"),
            "allow_reflective_factory": self.get_bool("ALLOW_REFLECTIVE_FACTORY"),
        }
        return {key: value for key, value in found.items() if value is not None}


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON or YAML configuration file into a dictionary.

    Raises:
        ConfigurationError: If the file is missing, of another format, or
            cannot be parsed.
    """
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}", details={"path": str(path)})

    suffix = path.suffix.lower()
    if suffix == ".json":
        parse, parse_error, kind = json.loads, json.JSONDecodeError, "JSON"
    elif suffix in (".yaml", ".yml"):
        try:
            import yaml
        except ImportError as e:
            raise ConfigurationError(
                "PyYAML is required for YAML configuration files. Install with: pip install pyyaml",
                cause=e,
            ) from e
        parse, parse_error, kind = yaml.safe_load, yaml.YAMLError, "YAML"
    else:
        raise ConfigurationError(
            f"Unsupported configuration file format: {suffix}",
            details={"path": str(path)},
        )

    try:
        data = parse(path.read_text())
    except parse_error as e:
        raise ConfigurationError(
            f"Failed to parse {kind} configuration: {path}",
            details={"path": str(path)},
            cause=e,
        ) from e
    return data if isinstance(data, dict) else {}


def find_config_file(start_dir: Path | None = None, max_depth: int = 5) -> Path | None:
    """Look for an actuator config file in ``start_dir`` and its parents."""
    directory = start_dir or Path.cwd()
    for _ in range(max_depth):
        for name in CONFIG_FILE_NAMES:
            if (directory / name).is_file():
                return directory / name
        if directory.parent == directory:
            break
        directory = directory.parent
    return None


@dataclass(frozen=True, slots=True)
class ActuatorConfig:
    """Settings for health contributor assembly and reporting.

    Attributes:
        log_level: Root level applied by ``configure_logging``.
        show_details: Whether composite health includes indicator details.
        status_order: Status codes from most to least severe, used to
            aggregate composite health. Codes left out rank last.
        allow_reflective_factory: Whether configurations may build
            indicators reflectively when no factory is given.

    Raises:
        InvalidConfigValueError: On construction, for an unknown log level,
            an empty status order, an unknown status code or a repeated one.
    """

    log_level: str = "INFO"
    show_details: bool = True
    status_order: tuple[str, ...] = DEFAULT_STATUS_ORDER
    allow_reflective_factory: bool = True

    def __post_init__(self) -> None:
        if self.log_level.upper() not in LogLevel.__members__:
            raise InvalidConfigValueError(
                f"Invalid log_level: {self.log_level}",
                config_key="log_level",
                value=self.log_level,
                expected=f"one of {', '.join(LogLevel.__members__)}",
            )
        unknown = [code for code in self.status_order if code not in DEFAULT_STATUS_ORDER]
        if not self.status_order or unknown or len(set(self.status_order)) != len(self.status_order):
            raise InvalidConfigValueError(
                f"Invalid status_order: {list(self.status_order)}",
                config_key="status_order",
                value=list(self.status_order),
                expected=f"distinct codes from {', '.join(DEFAULT_STATUS_ORDER)}",
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "log_level": self.log_level,
            "show_details": self.show_details,
            "status_order": list(self.status_order),
            "allow_reflective_factory": self.allow_reflective_factory,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build a config from a dictionary; status codes are upper-cased."""
        defaults = cls()
        order = data.get("status_order", defaults.status_order)
        return cls(
            log_level=data.get("log_level", defaults.log_level),
            show_details=data.get("show_details", defaults.show_details),
            status_order=tuple(str(code).upper() for code in order),
            allow_reflective_factory=data.get(
                "allow_reflective_factory", defaults.allow_reflective_factory
            ),
        )

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> Self:
        return cls.from_dict(EnvReader(prefix).overrides())

    @classmethod
    def from_file(cls, path: Path | str) -> Self:
        return cls.from_dict(load_config_file(Path(path)))

    @classmethod
    def load(
        cls,
        config_file: Path | str | None = None,
        env_prefix: str = DEFAULT_ENV_PREFIX,
        search_config: bool = True,
    ) -> Self:
        """Merge defaults, a config file and the environment.

        Args:
            config_file: Explicit file; otherwise one is searched for when
                ``search_config`` is true.
            env_prefix: Environment variable prefix.
            search_config: Whether to search the working directory and its
                parents for a config file.
        """
        path = Path(config_file) if config_file else (find_config_file() if search_config else None)
        data = load_config_file(path) if path is not None else {}
        return cls.from_dict({**data, **EnvReader(env_prefix).overrides()})


DEFAULT_ACTUATOR_CONFIG = ActuatorConfig()
