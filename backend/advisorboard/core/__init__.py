"""
Core application modules.
Contains configuration, errors, logging, metrics, caching and resilience helpers.
"""
from .config import EnvironmentConfig, OrchestratorConfig, RetryPolicy, load_config_from_env
from .errors import ErrorKind, InvalidRequestError, ProviderError

__all__ = [
    "EnvironmentConfig",
    "ErrorKind",
    "InvalidRequestError",
    "OrchestratorConfig",
    "ProviderError",
    "RetryPolicy",
    "load_config_from_env",
]
