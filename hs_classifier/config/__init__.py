from .exceptions import ClassifierError, ConfigurationError, ErrorKind
from .settings import AppConfig, CompletionSettings, StoreSettings

__all__ = [
    "AppConfig",
    "CompletionSettings",
    "StoreSettings",
    "ClassifierError",
    "ConfigurationError",
    "ErrorKind",
]
