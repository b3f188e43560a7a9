"""claudewrap — async Python client for the Claude command-line tool."""

from claudewrap.client import ClaudeClient
from claudewrap.config import ClientConfig, ConfigError, OAuthCredentials, load_config
from claudewrap.errors import (
    ClaudeWrapError,
    ExecutableNotFoundError,
    ProcessFailedError,
    StreamAbortedError,
    StreamFailedError,
    TokenRefreshError,
)
from claudewrap.models import ClaudeResponse, PromptRequest, ResultMessage
from claudewrap.session import Session
from claudewrap.stream import Aborted, Completed, Failed, StreamingResponse

__version__ = "0.1.0"

__all__ = [
    "Aborted",
    "ClaudeClient",
    "ClaudeResponse",
    "ClaudeWrapError",
    "ClientConfig",
    "Completed",
    "ConfigError",
    "ExecutableNotFoundError",
    "Failed",
    "OAuthCredentials",
    "ProcessFailedError",
    "PromptRequest",
    "ResultMessage",
    "Session",
    "StreamAbortedError",
    "StreamFailedError",
    "StreamingResponse",
    "TokenRefreshError",
    "__version__",
    "load_config",
]
