"""Errors raised while configuring and assembling health contributors.

    ActuatorError
    ├── ConfigurationError
    │   └── InvalidConfigValueError
    └── IndicatorCreationError

Each error carries a ``details`` mapping that ends up in its string form, so
a failed startup points at the offending key or type.
"""

from __future__ import annotations

from typing import Any


class ActuatorError(Exception):
    """Root of the actuator error hierarchy.

    Attributes:
        message: What went wrong.
        details: Structured context, e.g. the config key or the types involved.
        cause: Exception this error was raised from, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})
        self.cause = cause

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} | Details: {self.details}"


class ConfigurationError(ActuatorError):
    """The actuator configuration cannot be loaded or used."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = dict(details or {})
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, details=details, cause=cause)
        self.config_key = config_key


class InvalidConfigValueError(ConfigurationError):
    """A configuration key holds a value of the wrong shape."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str,
        value: Any = None,
        expected: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {"value": value}
        if expected:
            details["expected"] = expected
        super().__init__(message, config_key=config_key, details=details, cause=cause)
        self.value = value
        self.expected = expected


def _type_name(value: Any) -> str:
    if isinstance(value, type):
        return f"{value.__module__}.{value.__qualname__}"
    return repr(value)


class IndicatorCreationError(ActuatorError):
    """A health indicator could not be built for a bean.

    Raised by the reflective indicator factory. The message names the
    indicator type and the bean type so the failing configuration can be
    found from the startup log.

    Attributes:
        indicator_type: Indicator class that was to be constructed.
        bean_type: Bean class handed to its constructor.
    """

    def __init__(
        self,
        indicator_type: Any,
        bean_type: Any,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        indicator_name = _type_name(indicator_type)
        bean_name = _type_name(bean_type)
        details = dict(details or {})
        details.update(indicator_type=indicator_name, bean_type=bean_name)
        super().__init__(
            f"Unable to create health indicator {indicator_name} for bean type {bean_name}",
            details=details,
            cause=cause,
        )
        self.indicator_type = indicator_type
        self.bean_type = bean_type
