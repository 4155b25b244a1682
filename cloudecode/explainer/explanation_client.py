"""
Explanation client: one remote call per query, every outcome classified.
"""

import logging
from typing import Any, Callable, Protocol

from cloudecode.explainer.errors import (
    DEFAULT_ERROR_MESSAGE,
    KEY_AUTH_REQUIRED,
    KEY_LEAKED,
    QUOTA_EXCEEDED,
    AuthRequiredError,
    CredentialLeakedError,
    ExplanationError,
    GenericExplanationError,
    QuotaExceededError,
)
from cloudecode.explainer.result_parser import parse
from cloudecode.models.explanation_models import ExplanationResult

logger = logging.getLogger(__name__)

SENTINEL_ERRORS = {
    KEY_LEAKED: CredentialLeakedError,
    KEY_AUTH_REQUIRED: AuthRequiredError,
    QUOTA_EXCEEDED: QuotaExceededError,
}


class RemoteExplainer(Protocol):
    async def explain_command(self, query: str) -> Any: ...


def classify_failure(exc: BaseException) -> ExplanationError:
    """
    Map a remote failure onto the explanation error taxonomy.

    Already classified errors are returned as they are. Sentinel messages map
    to their dedicated error; anything else becomes a generic error carrying
    the failure's message, or a fixed fallback when it has none.
    """
    if isinstance(exc, ExplanationError):
        return exc

    message = str(exc).strip()
    error_type = SENTINEL_ERRORS.get(message)
    if error_type is not None:
        return error_type()
    return GenericExplanationError(message or DEFAULT_ERROR_MESSAGE)


class ExplanationClient:
    """Issues the remote call and normalizes its outcome."""

    def __init__(
        self,
        remote: RemoteExplainer,
        parser: Callable[[Any], ExplanationResult] = parse,
    ):
        self.remote = remote
        self.parser = parser

    async def explain(self, query: str) -> ExplanationResult:
        """
        Explain a command.

        The query is sent as given; callers skip blank input.

        Raises:
            ExplanationError: One of QuotaExceededError, AuthRequiredError,
                CredentialLeakedError or GenericExplanationError.
        """
        try:
            raw = await self.remote.explain_command(query)
        except Exception as e:
            error = classify_failure(e)
            logger.info(f"Explanation request failed: {type(error).__name__}")
            if error is e:
                raise
            raise error from e

        return self.parser(raw)
