"""Custom TTS provider exceptions."""


class TTSError(Exception):
    """Base exception for TTS-related errors."""

    retryable = False

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class TTSAuthError(TTSError):
    """Exception raised for authentication failures.

    This typically occurs when:
    - API key is missing or invalid
    - Account has insufficient credits
    - API key permissions are insufficient
    """

    pass


class TTSAPIError(TTSError):
    """Exception raised for API communication errors.

    Subclasses narrow the cause so callers can tell a retryable failure
    from one that will fail again.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code


class TTSRateLimitError(TTSAPIError):
    """Quota exhausted or rate limit exceeded (429)."""

    retryable = True


class TTSInputError(TTSAPIError):
    """The provider rejected the request payload (4xx other than auth/429)."""

    pass


class TTSUnavailableError(TTSAPIError):
    """Transient provider failure: 5xx, timeouts, connection errors."""

    retryable = True


def error_for_status(
    status_code: int, detail: str, original_error: Exception | None = None
) -> TTSError:
    """Map an HTTP status code to the matching TTS exception."""
    if status_code in (401, 403):
        return TTSAuthError(f"Authentication failed: {detail}", original_error)
    if status_code == 429:
        return TTSRateLimitError(
            f"Rate limit exceeded: {detail}", status_code, original_error
        )
    if 400 <= status_code < 500:
        return TTSInputError(
            f"Request rejected: {detail}", status_code, original_error
        )
    if status_code >= 500:
        return TTSUnavailableError(
            f"Server error: {detail}", status_code, original_error
        )
    return TTSAPIError(f"API call failed: {detail}", status_code, original_error)
