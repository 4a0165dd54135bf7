"""BrowseBot exception hierarchy.

All BrowseBot-specific exceptions inherit from BrowseBotError.
Only provider and configuration errors escape a conversation turn;
tool and parsing errors are converted to payloads where they occur.
"""


class BrowseBotError(Exception):
    """Base exception for all BrowseBot errors."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class ConfigError(BrowseBotError):
    """Invalid or missing configuration (API key, model, provider name)."""


class ProviderError(BrowseBotError):
    """Error communicating with an LLM provider."""

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message, retryable=retryable)


class NetworkError(ProviderError):
    """Transport-level failure: the request never produced an HTTP response."""


class ApiError(ProviderError):
    """Provider answered with a non-success HTTP status."""

    def __init__(self, status: int, message: str = "") -> None:
        super().__init__(
            f"API Error: {status} - {message}" if message else f"API Error: {status}",
            retryable=status == 429 or status >= 500,
        )
        self.status = status
        self.message = message


class NoResponseError(BrowseBotError):
    """Provider returned no usable content."""


class ToolError(BrowseBotError):
    """Error executing a tool."""


class ToolNotAvailableError(ToolError):
    """Model requested a tool name that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f'Tool "{name}" is not available.')
        self.name = name


class ToolExecutionError(ToolError):
    """A registered tool failed internally."""


class MalformedCitationError(BrowseBotError):
    """Model text is not a valid citation envelope."""
