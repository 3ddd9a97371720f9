"""k1s0 remote config library."""

from .cache import ConfigCache
from .client import RemoteConfigClient, create_config_service
from .evaluator import evaluate, evaluate_details, rollout_bucket
from .exceptions import RemoteConfigError, RemoteConfigErrorCodes
from .fetcher import ConfigFetcher, HttpConfigFetcher
from .loader import load_options
from .logger import LOGGER_NAME, configure_logging, get_logger
from .memory import InMemoryConfigCache
from .models import (
    EMPTY_SNAPSHOT,
    EvaluationReason,
    EvaluationResult,
    FetchResult,
    FetchStatus,
    Snapshot,
    User,
)
from .options import (
    AutoPollOptions,
    LazyLoadOptions,
    ManualPollOptions,
    OptionsBase,
    parse_options,
)
from .refresh import RefreshOrchestrator
from .services import (
    AutoPollConfigService,
    ConfigService,
    LazyLoadConfigService,
    ManualPollConfigService,
    ServiceState,
)
from .settings import Comparator, PercentageItem, RolloutRule, Setting, SettingType

__all__ = [
    "EMPTY_SNAPSHOT",
    "LOGGER_NAME",
    "AutoPollConfigService",
    "AutoPollOptions",
    "Comparator",
    "ConfigCache",
    "ConfigFetcher",
    "ConfigService",
    "EvaluationReason",
    "EvaluationResult",
    "FetchResult",
    "FetchStatus",
    "HttpConfigFetcher",
    "InMemoryConfigCache",
    "LazyLoadConfigService",
    "LazyLoadOptions",
    "ManualPollConfigService",
    "ManualPollOptions",
    "OptionsBase",
    "PercentageItem",
    "RefreshOrchestrator",
    "RemoteConfigClient",
    "RemoteConfigError",
    "RemoteConfigErrorCodes",
    "RolloutRule",
    "ServiceState",
    "Setting",
    "SettingType",
    "Snapshot",
    "User",
    "configure_logging",
    "create_config_service",
    "evaluate",
    "evaluate_details",
    "get_logger",
    "load_options",
    "parse_options",
    "rollout_bucket",
]
