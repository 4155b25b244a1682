"""
Observable request state and its transitions.

Every transition is a pure function taking the current Snapshot and
returning a new one. Snapshots are frozen; the orchestrator is the only
code that swaps them.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from cloudecode.explainer.errors import (
    AuthRequiredError,
    CredentialLeakedError,
    ExplanationError,
    QuotaExceededError,
)
from cloudecode.models.explanation_models import ExplanationResult


class ErrorKind(str, Enum):
    NONE = "none"
    QUOTA = "quota"
    AUTH = "auth"
    LEAKED = "leaked"


ERROR_MESSAGES = {
    ErrorKind.QUOTA: "Your API key has exceeded its quota.",
    ErrorKind.AUTH: "Authentication required. Please authorize your API key.",
    ErrorKind.LEAKED: (
        "Your API key was reported as leaked. It has been permanently disabled."
    ),
}


class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["idle"] = "idle"


class Loading(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["loading"] = "loading"


class SuccessDisplay(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    result: ExplanationResult


class ErrorDisplay(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    kind: ErrorKind = ErrorKind.NONE
    message: str


RequestState = Annotated[
    Union[Idle, Loading, SuccessDisplay, ErrorDisplay],
    Field(discriminator="status"),
]


class Snapshot(BaseModel):
    """Everything the presentation layer may read."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    state: RequestState = Field(default_factory=Idle)
    has_credential: bool = False

    @property
    def is_loading(self) -> bool:
        return isinstance(self.state, Loading)

    @property
    def error_kind(self) -> ErrorKind:
        if isinstance(self.state, ErrorDisplay):
            return self.state.kind
        return ErrorKind.NONE

    @property
    def is_blocked(self) -> bool:
        """True while a leaked key blocks every submission."""
        return self.error_kind is ErrorKind.LEAKED

    @property
    def can_submit(self) -> bool:
        return self.has_credential and not self.is_loading and not self.is_blocked


def _replace(snapshot: Snapshot, **changes) -> Snapshot:
    return snapshot.model_copy(update=changes)


def error_kind_for(error: ExplanationError) -> ErrorKind:
    if isinstance(error, CredentialLeakedError):
        return ErrorKind.LEAKED
    if isinstance(error, AuthRequiredError):
        return ErrorKind.AUTH
    if isinstance(error, QuotaExceededError):
        return ErrorKind.QUOTA
    return ErrorKind.NONE


def set_query(snapshot: Snapshot, query: str) -> Snapshot:
    return _replace(snapshot, query=query)


def begin_request(snapshot: Snapshot, query: str) -> Snapshot:
    return _replace(snapshot, query=query, state=Loading())


def complete_request(snapshot: Snapshot, result: ExplanationResult) -> Snapshot:
    return _replace(snapshot, state=SuccessDisplay(result=result))


def fail_request(snapshot: Snapshot, error: ExplanationError) -> Snapshot:
    """
    Move to the error state for ``error``.

    Named kinds get a fixed message; generic failures keep their own. An
    authentication failure also clears the credential flag, since the remote
    service is the authority on whether a key is usable.
    """
    kind = error_kind_for(error)
    message = ERROR_MESSAGES.get(kind, error.message)
    changes = {"state": ErrorDisplay(kind=kind, message=message)}
    if kind is ErrorKind.AUTH:
        changes["has_credential"] = False
    return _replace(snapshot, **changes)


def credential_checked(snapshot: Snapshot, selected: bool) -> Snapshot:
    return _replace(snapshot, has_credential=selected)


def credential_selected(snapshot: Snapshot) -> Snapshot:
    """
    Apply a completed credential selection.

    Clears any error (including a leaked key) back to Idle. Loading and
    success states are left alone so an in-flight request can still land.
    """
    if isinstance(snapshot.state, ErrorDisplay):
        return _replace(snapshot, has_credential=True, state=Idle())
    return _replace(snapshot, has_credential=True)
