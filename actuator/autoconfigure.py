"""Autoconfiguration support for composite health contributors.

Autoconfiguration usually finds every bean of one kind by name (all data
sources, all caches, ...) and needs a single health contributor for them.
The configurations in this module build that contributor:

- One bean: the bean is wrapped in a health indicator and returned directly.
- Several beans: a composite contributor is built from all of them.

Indicators are created by an indicator factory given at construction. Older
configurations that pass no factory fall back to a reflective factory that
calls the one-argument constructor of the indicator type bound in the
configuration's generic parameters; that path is deprecated.

Example:
    >>> class DataSourceHealthConfiguration(
    ...     CompositeHealthContributorConfiguration[DataSourceHealthIndicator, DataSource]
    ... ):
    ...     def __init__(self):
    ...         super().__init__(DataSourceHealthIndicator)

    >>> configuration = DataSourceHealthConfiguration()
    >>> contributor = configuration.create_contributor({"primary": ds1, "replica": ds2})
    >>> contributor.names
    ['primary', 'replica']
"""

from __future__ import annotations

import inspect
import warnings
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import (
    Any,
    Generic,
    TypeVar,
    get_args,
    get_origin,
    get_type_hints,
)

from actuator.config import DEFAULT_ACTUATOR_CONFIG, ActuatorConfig
from actuator.exceptions import ConfigurationError, IndicatorCreationError
from actuator.health import (
    AsyncHealthContributor,
    CompositeAsyncHealthContributor,
    CompositeHealthContributor,
    HealthContributor,
    StatusAggregator,
)
from actuator.logging import get_logger


ContributorT = TypeVar("ContributorT")
IndicatorT = TypeVar("IndicatorT")
BeanT = TypeVar("BeanT")


# =============================================================================
# Generic Type Resolution
# =============================================================================


def _describe(value: Any) -> str:
    return getattr(value, "__qualname__", repr(value))


def _passes_check(check: Callable[[Any, type], bool], value: Any, cls: type) -> bool:
    """Run an isinstance/issubclass check, passing when ``cls`` refuses it.

    Protocols that are not runtime_checkable raise TypeError here.
    """
    try:
        return check(value, cls)
    except TypeError:
        return True


def resolve_type_arguments(cls: type, generic_base: type) -> tuple[Any, ...]:
    """Resolve the type arguments ``cls`` binds for ``generic_base``.

    Type variables are substituted through intermediate generic classes, so
    ``class Foo(Middle[int])`` with ``class Middle(Base[str, T])`` resolves
    to ``(str, int)``. Parameters that remain unbound are returned as the
    type variables themselves.

    Args:
        cls: Concrete class to inspect.
        generic_base: Generic class whose arguments are wanted.

    Returns:
        Tuple of resolved arguments, one per parameter of ``generic_base``.
    """

    def visit(klass: type, bindings: dict[Any, Any]) -> tuple[Any, ...] | None:
        for base in klass.__dict__.get("__orig_bases__", klass.__bases__):
            origin = get_origin(base) or base
            if not isinstance(origin, type) or not issubclass(origin, generic_base):
                continue
            args = tuple(
                bindings.get(arg, arg) if isinstance(arg, TypeVar) else arg
                for arg in get_args(base)
            )
            if origin is generic_base:
                return args or generic_base.__parameters__
            params = getattr(origin, "__parameters__", ())
            found = visit(origin, dict(zip(params, args, strict=False)))
            if found is not None:
                return found
        return None

    return visit(cls, {}) or generic_base.__parameters__


# =============================================================================
# Reflective Indicator Factory
# =============================================================================


class ReflectionIndicatorFactory(Generic[IndicatorT, BeanT]):
    """Indicator factory calling the indicator type's one-argument constructor.

    The indicator and bean types are read from the generic arguments of the
    configuration class once, and the constructor is looked up once. Any
    lookup failure is kept and reported on every call, wrapped in an
    IndicatorCreationError naming both types.

    Deprecated: give configurations an explicit indicator factory instead.
    """

    def __init__(self, configuration_type: type) -> None:
        args = resolve_type_arguments(
            configuration_type, AbstractCompositeHealthContributorConfiguration
        )
        self.indicator_type: Any = args[1]
        self.bean_type: Any = args[2]
        self._constructor: Callable[[BeanT], IndicatorT] | None = None
        self._lookup_error: Exception | None = None
        try:
            self._constructor = self._get_constructor()
        except (TypeError, ValueError) as e:
            self._lookup_error = e

    def _get_constructor(self) -> Callable[[BeanT], IndicatorT]:
        if not isinstance(self.indicator_type, type):
            raise TypeError(f"Indicator type {self.indicator_type!r} is not a class")
        if not isinstance(self.bean_type, type):
            raise TypeError(f"Bean type {self.bean_type!r} is not a class")

        signature = inspect.signature(self.indicator_type)
        positional = [
            p
            for p in signature.parameters.values()
            if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
        ]
        required = [
            p
            for p in signature.parameters.values()
            if p.default is p.empty and p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
        ]
        if not positional or required not in ([], [positional[0]]):
            raise TypeError(
                f"{self.indicator_type.__qualname__} has no constructor "
                "taking a single bean argument"
            )

        parameter = positional[0]
        try:
            hints = get_type_hints(self.indicator_type.__init__)
        except Exception:
            # Unresolvable annotations leave the parameter unchecked.
            hints = {}
        expected = hints.get(parameter.name)
        if (
            isinstance(expected, type)
            and expected is not self.bean_type
            and not _passes_check(issubclass, self.bean_type, expected)
        ):
            raise TypeError(
                f"{self.indicator_type.__qualname__}({parameter.name}: "
                f"{expected.__qualname__}) does not accept {self.bean_type.__qualname__}"
            )
        return self.indicator_type

    def __call__(self, bean: BeanT) -> IndicatorT:
        if self._lookup_error is not None:
            raise IndicatorCreationError(
                self.indicator_type,
                self.bean_type,
                cause=self._lookup_error,
            ) from self._lookup_error
        try:
            if not _passes_check(isinstance, bean, self.bean_type):
                raise TypeError(
                    f"Expected bean of type {self.bean_type.__qualname__}, "
                    f"got {type(bean).__qualname__}"
                )
            return self._constructor(bean)
        except Exception as e:
            raise IndicatorCreationError(
                self.indicator_type,
                self.bean_type,
                cause=e,
            ) from e


# =============================================================================
# Configurations
# =============================================================================


class AbstractCompositeHealthContributorConfiguration(
    ABC, Generic[ContributorT, IndicatorT, BeanT]
):
    """Base class for configurations combining beans into one contributor.

    Type Parameters:
        ContributorT: Contributor type returned by ``create_contributor``.
        IndicatorT: Indicator type created for a single bean; must be usable
            wherever ContributorT is expected.
        BeanT: Bean type.

    Subclasses implement ``create_composite``.
    """

    def __init__(
        self,
        indicator_factory: Callable[[BeanT], IndicatorT] | None = None,
        *,
        config: ActuatorConfig | None = None,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the configuration.

        Args:
            indicator_factory: Function creating an indicator for one bean.
                When omitted, indicators are created reflectively from the
                generic parameters of the subclass (deprecated).
            config: Actuator configuration.
            logger_name: Logger name (default: actuator.autoconfigure).

        Raises:
            ConfigurationError: If no factory is given and reflective
                creation is disabled by configuration.
        """
        self.config = config or DEFAULT_ACTUATOR_CONFIG
        self._logger = get_logger(logger_name or "actuator.autoconfigure")

        if indicator_factory is None:
            if not self.config.allow_reflective_factory:
                raise ConfigurationError(
                    f"{type(self).__name__} requires an indicator factory: "
                    "reflective indicator creation is disabled",
                    config_key="allow_reflective_factory",
                )
            warnings.warn(
                f"{type(self).__name__} creates health indicators reflectively; "
                "pass an indicator_factory instead",
                DeprecationWarning,
                stacklevel=2,
            )
            reflective: ReflectionIndicatorFactory[IndicatorT, BeanT] = (
                ReflectionIndicatorFactory(type(self))
            )
            self._logger.warning(
                "Using reflective health indicator factory",
                configuration=type(self).__name__,
                indicator_type=_describe(reflective.indicator_type),
                bean_type=_describe(reflective.bean_type),
            )
            indicator_factory = reflective

        self._indicator_factory = indicator_factory

    @property
    def indicator_factory(self) -> Callable[[BeanT], IndicatorT]:
        return self._indicator_factory

    def create_contributor(self, beans: Mapping[str, BeanT]) -> ContributorT:
        """Create a contributor for the given beans.

        Args:
            beans: Beans keyed by name. Must not be empty.

        Returns:
            The indicator for the bean when there is exactly one, otherwise
            the composite built by ``create_composite``.

        Raises:
            ValueError: If ``beans`` is empty.
        """
        if not beans:
            raise ValueError("Beans must not be empty")
        if len(beans) == 1:
            name, bean = next(iter(beans.items()))
            self._logger.debug(
                "Creating single health indicator",
                configuration=type(self).__name__,
                bean_name=name,
            )
            return self.create_indicator(bean)
        self._logger.debug(
            "Creating composite health contributor",
            configuration=type(self).__name__,
            bean_names=list(beans),
        )
        return self.create_composite(beans)

    @abstractmethod
    def create_composite(self, beans: Mapping[str, BeanT]) -> ContributorT:
        """Create a contributor combining several beans."""
        ...

    def create_indicator(self, bean: BeanT) -> IndicatorT:
        """Create the indicator for a single bean."""
        return self._indicator_factory(bean)


class CompositeHealthContributorConfiguration(
    AbstractCompositeHealthContributorConfiguration[HealthContributor, IndicatorT, BeanT]
):
    """Configuration producing synchronous health contributors.

    Several beans become a CompositeHealthContributor holding one indicator
    per bean, aggregated with the configured status order.
    """

    def create_composite(self, beans: Mapping[str, BeanT]) -> HealthContributor:
        return CompositeHealthContributor.from_map(
            beans,
            self.create_indicator,
            aggregator=StatusAggregator.from_config(self.config),
            show_details=self.config.show_details,
        )


class CompositeAsyncHealthContributorConfiguration(
    AbstractCompositeHealthContributorConfiguration[AsyncHealthContributor, IndicatorT, BeanT]
):
    """Configuration producing asynchronous health contributors."""

    def create_composite(self, beans: Mapping[str, BeanT]) -> AsyncHealthContributor:
        return CompositeAsyncHealthContributor.from_map(
            beans,
            self.create_indicator,
            aggregator=StatusAggregator.from_config(self.config),
            show_details=self.config.show_details,
        )


class FunctionalHealthContributorConfiguration(
    AbstractCompositeHealthContributorConfiguration[ContributorT, IndicatorT, BeanT]
):
    """Configuration whose composite creation is an injected function."""

    def __init__(
        self,
        indicator_factory: Callable[[BeanT], IndicatorT],
        composite_factory: Callable[[Mapping[str, BeanT]], ContributorT],
        *,
        config: ActuatorConfig | None = None,
        logger_name: str | None = None,
    ) -> None:
        if indicator_factory is None:
            raise ValueError("indicator_factory must not be None")
        super().__init__(indicator_factory, config=config, logger_name=logger_name)
        self._composite_factory = composite_factory

    def create_composite(self, beans: Mapping[str, BeanT]) -> ContributorT:
        return self._composite_factory(beans)


# =============================================================================
# Utility Functions
# =============================================================================


def create_contributor_configuration(
    indicator_factory: Callable[[BeanT], IndicatorT],
    composite_factory: Callable[[Mapping[str, BeanT]], Any] | None = None,
    *,
    config: ActuatorConfig | None = None,
) -> FunctionalHealthContributorConfiguration[Any, IndicatorT, BeanT]:
    """Create a configuration from functions instead of a subclass.

    Args:
        indicator_factory: Function creating an indicator for one bean.
        composite_factory: Function creating the composite for several beans.
            Defaults to a CompositeHealthContributor of one indicator per bean.
        config: Actuator configuration.

    Returns:
        FunctionalHealthContributorConfiguration instance.

    Example:
        >>> configuration = create_contributor_configuration(PingIndicator)
        >>> configuration.create_contributor({"redis": redis_client})
        <PingIndicator ...>
    """
    resolved_config = config or DEFAULT_ACTUATOR_CONFIG
    if composite_factory is None:

        def composite_factory(beans: Mapping[str, BeanT]) -> HealthContributor:
            return CompositeHealthContributor.from_map(
                beans,
                indicator_factory,
                aggregator=StatusAggregator.from_config(resolved_config),
                show_details=resolved_config.show_details,
            )

    return FunctionalHealthContributorConfiguration(
        indicator_factory,
        composite_factory,
        config=resolved_config,
    )
