"""
Request orchestrator for CloudDecode.

This module sequences the credential check, the remote explanation call and
the resulting state change. It is the only writer of the observable
Snapshot and the single point where explanation failures are recovered.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from cloudecode.config.credentials import CredentialGate
from cloudecode.explainer.errors import ExplanationError, GenericExplanationError
from cloudecode.explainer.explanation_client import ExplanationClient
from cloudecode.orchestrator import state
from cloudecode.orchestrator.state import Snapshot

logger = logging.getLogger(__name__)

Listener = Callable[[Snapshot], None]


class RequestOrchestrator:
    """
    Single-flight state machine behind every explanation request.

    At most one request is outstanding; submissions made while one is
    loading, while a leaked key is blocking, or while no credential is
    selected are rejected without contacting the remote service.
    """

    def __init__(
        self,
        gate: CredentialGate,
        client: ExplanationClient,
        snapshot: Optional[Snapshot] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            gate (CredentialGate): Credential check and selection.
            client (ExplanationClient): Remote explanation calls.
            snapshot (Optional[Snapshot]): Starting state. Defaults to Idle
                with no credential selected.
        """
        self.gate = gate
        self.client = client
        self._snapshot = snapshot or Snapshot()
        self._listeners: List[Listener] = []

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback fired after every state change.

        Returns:
            Callable[[], None]: Removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _apply(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)

    def set_query(self, text: str) -> None:
        self._apply(state.set_query(self._snapshot, text))

    async def refresh_credentials(self) -> bool:
        """
        Re-read the credential state from the gate.

        Returns:
            bool: Whether a credential is selected.
        """
        selected = await self.gate.check_selected()
        self._apply(state.credential_checked(self._snapshot, selected))
        logger.debug(f"Credential selected: {selected}")
        return selected

    async def submit(self, text: Optional[str] = None) -> bool:
        """
        Explain ``text`` (or the current query when omitted).

        Returns:
            bool: True if a remote request was made, False if the submission
            was skipped or rejected.
        """
        query = self._snapshot.query if text is None else text
        if not query or not query.strip():
            return False

        current = self._snapshot
        if current.is_loading:
            logger.debug("Rejected submission: a request is already in flight")
            return False
        if current.is_blocked:
            logger.warning("Rejected submission: API key is disabled")
            return False
        if not current.has_credential:
            logger.warning("Rejected submission: no API key selected")
            return False

        self._apply(state.begin_request(current, query))

        try:
            result = await self.client.explain(query)
        except asyncio.CancelledError:
            logger.info("Explanation request cancelled")
            self._apply(
                state.fail_request(
                    self._snapshot, GenericExplanationError("Request cancelled")
                )
            )
            raise
        except ExplanationError as e:
            logger.info(f"Explanation failed: {e.message}")
            self._apply(state.fail_request(self._snapshot, e))
        except Exception as e:
            logger.exception("Unexpected error while explaining command")
            self._apply(
                state.fail_request(self._snapshot, GenericExplanationError(str(e)))
            )
        else:
            self._apply(state.complete_request(self._snapshot, result))

        return True

    async def use_quick_template(self, text: str) -> bool:
        """Set the query to a quick template and submit it."""
        self.set_query(text)
        return await self.submit()

    async def request_credential_selection(self) -> bool:
        """
        Let the user select a new credential.

        Returns:
            bool: Credential state after the selection attempt.
        """
        # With prior=False a True answer can only mean selection completed
        if await self.gate.request_selection(prior=False):
            self.credential_selected()
        else:
            logger.debug("Credential selection left the state unchanged")
        return self._snapshot.has_credential

    def credential_selected(self) -> None:
        self._apply(state.credential_selected(self._snapshot))
