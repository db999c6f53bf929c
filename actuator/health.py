"""Health reporting types for the actuator package.

This module provides the contributor types that autoconfiguration assembles:

- Health statuses and immutable health results
- Indicator protocols for sync and async health checks
- Base indicator classes that normalise results and failures
- Composite contributors aggregating named contributors
- Order-based status aggregation

Example:
    >>> class PingIndicator(AbstractHealthIndicator):
    ...     def __init__(self, client):
    ...         super().__init__()
    ...         self._client = client
    ...     def do_health_check(self):
    ...         return self._client.ping()

    >>> composite = CompositeHealthContributor.from_map(
    ...     {"primary": primary_client, "replica": replica_client},
    ...     PingIndicator,
    ... )
    >>> composite.health().status
    <Status.UP: 'UP'>
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    Self,
    TypeVar,
    runtime_checkable,
)

from actuator.config import DEFAULT_STATUS_ORDER
from actuator.logging import get_logger


if TYPE_CHECKING:
    from actuator.config import ActuatorConfig


V = TypeVar("V")


# =============================================================================
# Status
# =============================================================================


class Status(Enum):
    """Health status values.

    Attributes:
        UP: Component is functioning as expected.
        DOWN: Component has suffered an unexpected failure.
        OUT_OF_SERVICE: Component has been taken out of service on purpose.
        UNKNOWN: Component is in an unknown state.
    """

    UP = "UP"
    DOWN = "DOWN"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    UNKNOWN = "UNKNOWN"

    @property
    def code(self) -> str:
        """Return the status code."""
        return self.value

    @property
    def is_up(self) -> bool:
        """Check if status represents a working component."""
        return self is Status.UP


# =============================================================================
# Health Result
# =============================================================================


@dataclass(frozen=True, slots=True)
class Health:
    """Immutable health of a single indicator or of a composite.

    Attributes:
        status: Health status.
        details: Indicator specific details.
        components: Health of named children when produced by a composite.

    Example:
        >>> health = Health.up(version="15.4")
        >>> health.status.is_up
        True
    """

    status: Status
    details: dict[str, Any] = field(default_factory=dict)
    components: dict[str, Health] = field(default_factory=dict)

    @classmethod
    def up(cls, **details: Any) -> Health:
        """Create an UP health."""
        return cls(status=Status.UP, details=details)

    @classmethod
    def down(cls, error: BaseException | None = None, **details: Any) -> Health:
        """Create a DOWN health, recording ``error`` under the ``error`` detail."""
        if error is not None:
            details["error"] = f"{type(error).__name__}: {error}"
        return cls(status=Status.DOWN, details=details)

    @classmethod
    def out_of_service(cls, **details: Any) -> Health:
        """Create an OUT_OF_SERVICE health."""
        return cls(status=Status.OUT_OF_SERVICE, details=details)

    @classmethod
    def unknown(cls, **details: Any) -> Health:
        """Create an UNKNOWN health."""
        return cls(status=Status.UNKNOWN, details=details)

    def with_details(self, **kwargs: Any) -> Health:
        """Create a new health with additional details."""
        return Health(
            status=self.status,
            details={**self.details, **kwargs},
            components=self.components,
        )

    def without_details(self) -> Health:
        """Create a copy with details removed, recursively for components."""
        return Health(
            status=self.status,
            components={name: c.without_details() for name, c in self.components.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {"status": self.status.code}
        if self.details:
            result["details"] = self.details
        if self.components:
            result["components"] = {
                name: component.to_dict() for name, component in self.components.items()
            }
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create a Health from a dictionary produced by ``to_dict``."""
        return cls(
            status=Status(data["status"]),
            details=dict(data.get("details", {})),
            components={
                name: cls.from_dict(component)
                for name, component in data.get("components", {}).items()
            },
        )


def _normalize_health(result: Health | Status | bool | None) -> Health:
    """Normalise a raw check result to Health.

    ``None`` and truthy values mean UP, falsy values mean DOWN.
    """
    if isinstance(result, Health):
        return result
    if isinstance(result, Status):
        return Health(status=result)
    if result is None:
        return Health.up()
    return Health.up() if result else Health.down()


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class HealthIndicator(Protocol):
    """Protocol for synchronous health indicators."""

    def health(self, include_details: bool = True) -> Health:
        """Return the current health.

        Args:
            include_details: Whether details should be included.
        """
        ...


@runtime_checkable
class AsyncHealthIndicator(Protocol):
    """Protocol for asynchronous health indicators."""

    async def health(self, include_details: bool = True) -> Health:
        """Return the current health.

        Args:
            include_details: Whether details should be included.
        """
        ...


# =============================================================================
# Base Indicators
# =============================================================================


class AbstractHealthIndicator(ABC):
    """Base class for indicators that run a single check.

    Subclasses implement ``do_health_check``. None or a truthy result means
    UP, a falsy one DOWN, and any exception is reported as DOWN and logged.
    """

    failure_message = "Health check failed"

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._logger = get_logger(logger_name or "actuator.health")

    @abstractmethod
    def do_health_check(self) -> Health | Status | bool | None:
        """Perform the check."""
        ...

    def health(self, include_details: bool = True) -> Health:
        try:
            result = _normalize_health(self.do_health_check())
        except Exception as e:
            self._logger.warning(
                self.failure_message,
                indicator=type(self).__name__,
                exception_type=type(e).__name__,
                exception_message=str(e),
            )
            result = Health.down(e)
        return result if include_details else result.without_details()


class AbstractAsyncHealthIndicator(ABC):
    """Async counterpart of AbstractHealthIndicator."""

    failure_message = "Health check failed"

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._logger = get_logger(logger_name or "actuator.health")

    @abstractmethod
    async def do_health_check(self) -> Health | Status | bool | None:
        """Perform the check."""
        ...

    async def health(self, include_details: bool = True) -> Health:
        try:
            result = _normalize_health(await self.do_health_check())
        except Exception as e:
            self._logger.warning(
                self.failure_message,
                indicator=type(self).__name__,
                exception_type=type(e).__name__,
                exception_message=str(e),
            )
            result = Health.down(e)
        return result if include_details else result.without_details()


# =============================================================================
# Status Aggregation
# =============================================================================


class StatusAggregator:
    """Aggregate statuses by picking the most severe one in ``order``.

    Codes missing from ``order`` rank after every listed code. An empty
    input aggregates to UNKNOWN.

    Example:
        >>> StatusAggregator().aggregate([Status.UP, Status.DOWN])
        <Status.DOWN: 'DOWN'>
    """

    def __init__(self, order: Sequence[str | Status] = DEFAULT_STATUS_ORDER) -> None:
        self._order = tuple(s.code if isinstance(s, Status) else s.upper() for s in order)

    @property
    def order(self) -> tuple[str, ...]:
        return self._order

    @classmethod
    def from_config(cls, config: ActuatorConfig) -> StatusAggregator:
        """Create an aggregator using the configured status order."""
        return cls(config.status_order)

    def _rank(self, status: Status) -> tuple[int, str]:
        try:
            return (self._order.index(status.code), status.code)
        except ValueError:
            return (len(self._order), status.code)

    def aggregate(self, statuses: Iterable[Status]) -> Status:
        candidates = set(statuses)
        if not candidates:
            return Status.UNKNOWN
        return min(candidates, key=self._rank)


DEFAULT_STATUS_AGGREGATOR = StatusAggregator()


# =============================================================================
# Composite Contributors
# =============================================================================


@dataclass(frozen=True, slots=True)
class NamedContributor:
    """A contributor paired with the name it is registered under."""

    name: str
    contributor: Any


def _adapt_contributors(
    mapping: Mapping[str, V],
    adapter: Callable[[V], Any] | None,
) -> dict[str, Any]:
    contributors: dict[str, Any] = {}
    for name, value in mapping.items():
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Contributor name must not be empty")
        contributor = adapter(value) if adapter is not None else value
        if contributor is None:
            raise ValueError(f"Contributor '{name}' must not be None")
        contributors[name] = contributor
    return contributors


class _CompositeBase:
    """Shared storage and lookup for composite contributors."""

    def __init__(
        self,
        contributors: Mapping[str, Any],
        aggregator: StatusAggregator | None = None,
        show_details: bool = True,
    ) -> None:
        self._contributors = _adapt_contributors(contributors, None)
        self._aggregator = aggregator or DEFAULT_STATUS_AGGREGATOR
        self._show_details = show_details
        self._logger = get_logger("actuator.health")

    @classmethod
    def from_map(
        cls,
        mapping: Mapping[str, V],
        adapter: Callable[[V], Any] | None = None,
        aggregator: StatusAggregator | None = None,
        show_details: bool = True,
    ) -> Self:
        """Create a composite from a mapping, adapting each value eagerly.

        Args:
            mapping: Source mapping of name to value.
            adapter: Function turning each value into a contributor. Values
                are used as they are when omitted.
            aggregator: Status aggregator (default: standard order).
            show_details: When False, details are never reported, whatever
                the caller asks for.

        Raises:
            ValueError: If a name is empty or an adapted value is None.
        """
        return cls(_adapt_contributors(mapping, adapter), aggregator, show_details)

    @property
    def names(self) -> list[str]:
        return list(self._contributors)

    def get_contributor(self, name: str) -> Any | None:
        """Return the contributor registered under ``name``, or None."""
        return self._contributors.get(name)

    def __iter__(self) -> Iterator[NamedContributor]:
        for name, contributor in self._contributors.items():
            yield NamedContributor(name, contributor)

    def __len__(self) -> int:
        return len(self._contributors)

    def __contains__(self, name: object) -> bool:
        return name in self._contributors

    def __repr__(self) -> str:
        return f"{type(self).__name__}(names={self.names!r})"

    def _failed(self, name: str, exc: Exception, include_details: bool) -> Health:
        self._logger.error(
            "Health contributor failed",
            contributor=name,
            exception_type=type(exc).__name__,
            exception_message=str(exc),
        )
        return Health.down(exc) if include_details else Health(status=Status.DOWN)

    @staticmethod
    def _checked(name: str, result: Any) -> Health:
        if not isinstance(result, Health):
            raise TypeError(
                f"Contributor '{name}' returned {type(result).__name__}, expected Health"
            )
        return result

    def _compose(self, components: dict[str, Health]) -> Health:
        status = self._aggregator.aggregate(c.status for c in components.values())
        return Health(status=status, components=components)


class CompositeHealthContributor(_CompositeBase):
    """Aggregates named synchronous contributors into one.

    Example:
        >>> composite = CompositeHealthContributor({"db": db_indicator, "cache": cache_indicator})
        >>> composite.health().to_dict()["components"]["db"]["status"]
        'UP'
    """

    def health(self, include_details: bool = True) -> Health:
        """Query every contributor and aggregate their statuses.

        A contributor that raises, or returns something other than Health,
        is reported DOWN instead of failing the composite.
        """
        include_details = include_details and self._show_details
        components: dict[str, Health] = {}
        for name, contributor in self._contributors.items():
            try:
                result = contributor.health(include_details)
                if inspect.isawaitable(result):
                    if inspect.iscoroutine(result):
                        result.close()
                    raise TypeError(
                        f"Contributor '{name}' is asynchronous; "
                        "use CompositeAsyncHealthContributor"
                    )
                components[name] = self._checked(name, result)
            except Exception as e:
                components[name] = self._failed(name, e, include_details)
        return self._compose(components)


class CompositeAsyncHealthContributor(_CompositeBase):
    """Aggregates named contributors concurrently.

    Coroutine ``health`` methods are awaited on the running loop; any other
    ``health`` runs in the loop's default executor, and an awaitable it
    returns is awaited as well.
    """

    async def _contributor_health(
        self,
        name: str,
        contributor: Any,
        include_details: bool,
    ) -> Health:
        try:
            if inspect.iscoroutinefunction(contributor.health):
                result = contributor.health(include_details)
            else:
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(
                    None, functools.partial(contributor.health, include_details)
                )
            if inspect.isawaitable(result):
                result = await result
            return self._checked(name, result)
        except Exception as e:
            return self._failed(name, e, include_details)

    async def health(self, include_details: bool = True) -> Health:
        """Query every contributor concurrently and aggregate their statuses."""
        include_details = include_details and self._show_details
        names = list(self._contributors)
        results = await asyncio.gather(
            *(
                self._contributor_health(name, self._contributors[name], include_details)
                for name in names
            )
        )
        return self._compose(dict(zip(names, results, strict=True)))


HealthContributor = HealthIndicator | CompositeHealthContributor
AsyncHealthContributor = AsyncHealthIndicator | CompositeAsyncHealthContributor
