"""
Error taxonomy for remote explanation requests.

The remote layer raises RemoteServiceError whose message is either one of
the sentinel strings below or a human-readable description. The explanation
client turns those into the ExplanationError subclasses the orchestrator
understands.
"""

from typing import Optional

KEY_LEAKED = "KEY_LEAKED"
KEY_AUTH_REQUIRED = "KEY_AUTH_REQUIRED"
QUOTA_EXCEEDED = "QUOTA_EXCEEDED"

DEFAULT_ERROR_MESSAGE = "The system encountered an error."


class RemoteServiceError(Exception):
    """Failure reported by the remote inference collaborator."""


class ExplanationError(Exception):
    """Base class for every classified explanation failure."""

    def __init__(self, message: Optional[str] = None):
        self.message = message or DEFAULT_ERROR_MESSAGE
        super().__init__(self.message)


class QuotaExceededError(ExplanationError):
    """The API key has run out of quota."""


class AuthRequiredError(ExplanationError):
    """The remote service did not accept the current credential."""


class CredentialLeakedError(ExplanationError):
    """The API key was reported as leaked and has been disabled."""


class GenericExplanationError(ExplanationError):
    """Any other failure, carrying the best available message."""


class MalformedResponseError(GenericExplanationError):
    """The remote payload did not match the explanation schema."""
