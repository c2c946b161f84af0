"""
Relay error taxonomy.

Every error the relay raises on purpose derives from RelayError and carries
the HTTP status it should be reported with. Cleanup failures never appear
here: they are logged by the attachment broker and dropped.
"""

from fastapi import status


CONFIGURATION_ERROR_MESSAGE = (
    "Server is missing or failed to initialize GEMINI_API_KEY. "
    "Check server environment variables."
)


class RelayError(Exception):
    """Base class for errors reported to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(RelayError):
    """Provider credential is missing or the client could not be built."""

    def __init__(self, message: str = CONFIGURATION_ERROR_MESSAGE):
        super().__init__(message)


class InvalidRequestError(RelayError):
    """Required input is missing or malformed. No provider call was made."""

    status_code = status.HTTP_400_BAD_REQUEST


class ContentTooLargeError(InvalidRequestError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class ProviderError(RelayError):
    """The remote inference provider rejected or failed a call."""

    status_code = status.HTTP_502_BAD_GATEWAY


class ConversationCreationError(ProviderError):
    pass


class UploadError(ProviderError):
    pass


class TurnError(ProviderError):
    pass


class TurnTimeoutError(TurnError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
