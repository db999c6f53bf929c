"""Actuator health contributor autoconfiguration.

Combines named health-check beans into a single health contributor: one bean
becomes a health indicator, several beans become a composite contributor.

Quick Start:
    >>> from actuator import CompositeHealthContributorConfiguration
    >>> class CacheHealthConfiguration(
    ...     CompositeHealthContributorConfiguration[CacheHealthIndicator, Cache]
    ... ):
    ...     def __init__(self):
    ...         super().__init__(CacheHealthIndicator)
    >>> contributor = CacheHealthConfiguration().create_contributor(caches)
    >>> contributor.health().status
    <Status.UP: 'UP'>

Functional Configuration:
    >>> from actuator import create_contributor_configuration
    >>> configuration = create_contributor_configuration(CacheHealthIndicator)
    >>> configuration.create_contributor({"local": local_cache})

Logging:
    >>> from actuator import ActuatorConfig, configure_logging
    >>> configure_logging(ActuatorConfig.load())

Public API:
    - Configurations: AbstractCompositeHealthContributorConfiguration,
      CompositeHealthContributorConfiguration, CompositeAsyncHealthContributorConfiguration,
      FunctionalHealthContributorConfiguration, create_contributor_configuration
    - Health: Status, Health, HealthIndicator, AsyncHealthIndicator, AbstractHealthIndicator,
      AbstractAsyncHealthIndicator, CompositeHealthContributor, CompositeAsyncHealthContributor,
      NamedContributor, StatusAggregator
    - Exceptions: ActuatorError, ConfigurationError, InvalidConfigValueError,
      IndicatorCreationError
    - Configuration: ActuatorConfig
    - Logging: get_logger, configure_logging, LogLevel, StreamHandler
"""

__version__ = "0.1.0"

from actuator.autoconfigure import (
    AbstractCompositeHealthContributorConfiguration,
    CompositeAsyncHealthContributorConfiguration,
    CompositeHealthContributorConfiguration,
    FunctionalHealthContributorConfiguration,
    ReflectionIndicatorFactory,
    create_contributor_configuration,
    resolve_type_arguments,
)
from actuator.config import (
    DEFAULT_ACTUATOR_CONFIG,
    DEFAULT_STATUS_ORDER,
    ActuatorConfig,
)
from actuator.exceptions import (
    ActuatorError,
    ConfigurationError,
    IndicatorCreationError,
    InvalidConfigValueError,
)
from actuator.health import (
    DEFAULT_STATUS_AGGREGATOR,
    AbstractAsyncHealthIndicator,
    AbstractHealthIndicator,
    AsyncHealthContributor,
    AsyncHealthIndicator,
    CompositeAsyncHealthContributor,
    CompositeHealthContributor,
    Health,
    HealthContributor,
    HealthIndicator,
    NamedContributor,
    Status,
    StatusAggregator,
)
from actuator.logging import (
    LogLevel,
    StreamHandler,
    configure_logging,
    get_logger,
)


__all__ = [
    "__version__",
    # Configurations
    "AbstractCompositeHealthContributorConfiguration",
    "CompositeAsyncHealthContributorConfiguration",
    "CompositeHealthContributorConfiguration",
    "FunctionalHealthContributorConfiguration",
    "ReflectionIndicatorFactory",
    "create_contributor_configuration",
    "resolve_type_arguments",
    # Config
    "DEFAULT_ACTUATOR_CONFIG",
    "DEFAULT_STATUS_ORDER",
    "ActuatorConfig",
    # Exceptions
    "ActuatorError",
    "ConfigurationError",
    "IndicatorCreationError",
    "InvalidConfigValueError",
    # Health
    "DEFAULT_STATUS_AGGREGATOR",
    "AbstractAsyncHealthIndicator",
    "AbstractHealthIndicator",
    "AsyncHealthContributor",
    "AsyncHealthIndicator",
    "CompositeAsyncHealthContributor",
    "CompositeHealthContributor",
    "Health",
    "HealthContributor",
    "HealthIndicator",
    "NamedContributor",
    "Status",
    "StatusAggregator",
    # Logging
    "LogLevel",
    "StreamHandler",
    "configure_logging",
    "get_logger",
]
