"""
Unit tests for the request orchestrator.

Covers submission gating, single-flight, classification into error states,
sticky leaked keys and credential selection.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from cloudecode.config.credentials import CredentialGate
from cloudecode.explainer.errors import (
    KEY_AUTH_REQUIRED,
    KEY_LEAKED,
    QUOTA_EXCEEDED,
    RemoteServiceError,
)
from cloudecode.explainer.explanation_client import ExplanationClient
from cloudecode.orchestrator.request_orchestrator import RequestOrchestrator
from cloudecode.orchestrator.state import (
    ERROR_MESSAGES,
    ErrorDisplay,
    ErrorKind,
    Idle,
    Loading,
    SuccessDisplay,
)


def fail_with(mock_remote, message):
    mock_remote.explain_command.side_effect = RemoteServiceError(message)


class TestRefreshCredentials:
    async def test_refresh_sets_state(self, orchestrator, credential_provider):
        assert orchestrator.snapshot.has_credential is False

        assert await orchestrator.refresh_credentials() is True
        assert orchestrator.snapshot.has_credential is True

        credential_provider.selected = False
        assert await orchestrator.refresh_credentials() is False
        assert orchestrator.snapshot.has_credential is False


class TestSubmit:
    async def test_success(self, ready_orchestrator, mock_remote, explanation_result):
        submitted = await ready_orchestrator.submit("docker-compose up -d --build")

        snapshot = ready_orchestrator.snapshot
        assert submitted is True
        assert isinstance(snapshot.state, SuccessDisplay)
        assert snapshot.state.result == explanation_result
        assert snapshot.query == "docker-compose up -d --build"
        mock_remote.explain_command.assert_awaited_once_with(
            "docker-compose up -d --build"
        )

    async def test_passes_through_loading_exactly_once(self, ready_orchestrator):
        seen = []
        ready_orchestrator.subscribe(lambda snapshot: seen.append(type(snapshot.state)))

        await ready_orchestrator.submit("kubectl get pods")

        assert seen == [Loading, SuccessDisplay]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    async def test_blank_query_is_ignored(self, ready_orchestrator, mock_remote, text):
        before = ready_orchestrator.snapshot

        assert await ready_orchestrator.submit(text) is False
        assert ready_orchestrator.snapshot is before
        mock_remote.explain_command.assert_not_called()

    async def test_submit_uses_current_query(self, ready_orchestrator, mock_remote):
        ready_orchestrator.set_query("az vm list")

        assert await ready_orchestrator.submit() is True
        mock_remote.explain_command.assert_awaited_once_with("az vm list")

    async def test_gated_submit_makes_no_call(self, orchestrator, credential_provider, mock_remote):
        credential_provider.selected = False
        await orchestrator.refresh_credentials()

        assert await orchestrator.submit("aws s3 ls") is False
        assert mock_remote.explain_command.call_count == 0
        assert isinstance(orchestrator.snapshot.state, Idle)

    async def test_submit_before_credential_check_is_gated(self, orchestrator, mock_remote):
        assert await orchestrator.submit("aws s3 ls") is False
        assert mock_remote.explain_command.call_count == 0

    async def test_success_replaces_previous_error(self, ready_orchestrator, mock_remote, explanation_json):
        fail_with(mock_remote, QUOTA_EXCEEDED)
        await ready_orchestrator.submit("ls")
        mock_remote.explain_command.side_effect = None
        mock_remote.explain_command.return_value = explanation_json

        await ready_orchestrator.submit("ls")

        assert isinstance(ready_orchestrator.snapshot.state, SuccessDisplay)


class TestSingleFlight:
    async def test_second_submit_while_loading_is_rejected(self, ready_orchestrator, mock_remote, explanation_json):
        release = asyncio.Event()

        async def slow_explain(query):
            await release.wait()
            return explanation_json

        mock_remote.explain_command.side_effect = slow_explain

        first = asyncio.create_task(ready_orchestrator.submit("aws s3 ls"))
        await asyncio.sleep(0)
        assert ready_orchestrator.snapshot.is_loading

        assert await ready_orchestrator.submit("az vm list") is False

        release.set()
        assert await first is True
        assert mock_remote.explain_command.await_count == 1
        assert ready_orchestrator.snapshot.query == "aws s3 ls"
        assert isinstance(ready_orchestrator.snapshot.state, SuccessDisplay)


class TestCancellation:
    async def test_cancelled_request_releases_single_flight(self, ready_orchestrator, mock_remote, explanation_json):
        never = asyncio.Event()

        async def hanging_explain(query):
            await never.wait()

        mock_remote.explain_command.side_effect = hanging_explain
        pending = asyncio.create_task(ready_orchestrator.submit("ls -la"))
        await asyncio.sleep(0)
        assert ready_orchestrator.snapshot.is_loading

        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending

        snapshot = ready_orchestrator.snapshot
        assert snapshot.state == ErrorDisplay(kind=ErrorKind.NONE, message="Request cancelled")
        assert snapshot.has_credential is True

        mock_remote.explain_command.side_effect = None
        mock_remote.explain_command.return_value = explanation_json
        assert await ready_orchestrator.submit("ls -la") is True
        assert isinstance(ready_orchestrator.snapshot.state, SuccessDisplay)


class TestErrorStates:
    @pytest.mark.parametrize(
        "sentinel,kind",
        [
            (QUOTA_EXCEEDED, ErrorKind.QUOTA),
            (KEY_AUTH_REQUIRED, ErrorKind.AUTH),
            (KEY_LEAKED, ErrorKind.LEAKED),
        ],
    )
    async def test_sentinels_map_to_kinds(self, ready_orchestrator, mock_remote, sentinel, kind):
        fail_with(mock_remote, sentinel)

        assert await ready_orchestrator.submit("gcloud compute instances list") is True

        assert ready_orchestrator.snapshot.state == ErrorDisplay(
            kind=kind, message=ERROR_MESSAGES[kind]
        )

    async def test_classification_is_repeatable(self, ready_orchestrator, mock_remote):
        fail_with(mock_remote, QUOTA_EXCEEDED)

        kinds = []
        for _ in range(3):
            await ready_orchestrator.submit("aws s3 ls")
            kinds.append(ready_orchestrator.snapshot.error_kind)

        assert kinds == [ErrorKind.QUOTA] * 3

    async def test_generic_error_message_verbatim(self, ready_orchestrator, mock_remote):
        fail_with(mock_remote, "Network error during API request: reset")

        await ready_orchestrator.submit("ls")

        assert ready_orchestrator.snapshot.state == ErrorDisplay(
            kind=ErrorKind.NONE, message="Network error during API request: reset"
        )

    async def test_generic_error_without_message(self, ready_orchestrator, mock_remote):
        mock_remote.explain_command.side_effect = RuntimeError()

        await ready_orchestrator.submit("ls")

        assert ready_orchestrator.snapshot.state.message == "The system encountered an error."

    async def test_malformed_response(self, ready_orchestrator, mock_remote):
        mock_remote.explain_command.return_value = '{"issue": "only"}'

        await ready_orchestrator.submit("ls")

        state = ready_orchestrator.snapshot.state
        assert isinstance(state, ErrorDisplay)
        assert state.kind is ErrorKind.NONE
        assert "Failed to parse API response" in state.message

    async def test_unexpected_client_exception_is_contained(self, credential_provider):
        client = Mock(spec=ExplanationClient)
        client.explain = AsyncMock(side_effect=KeyError("surprise"))
        orchestrator = RequestOrchestrator(CredentialGate(credential_provider), client)
        await orchestrator.refresh_credentials()

        assert await orchestrator.submit("ls") is True

        assert isinstance(orchestrator.snapshot.state, ErrorDisplay)
        assert orchestrator.snapshot.error_kind is ErrorKind.NONE

    async def test_auth_failure_clears_credential(self, ready_orchestrator, mock_remote):
        fail_with(mock_remote, KEY_AUTH_REQUIRED)

        await ready_orchestrator.submit("ls")

        assert ready_orchestrator.snapshot.has_credential is False
        assert await ready_orchestrator.submit("ls") is False
        assert mock_remote.explain_command.await_count == 1

    async def test_retry_allowed_after_quota(self, ready_orchestrator, mock_remote):
        fail_with(mock_remote, QUOTA_EXCEEDED)
        await ready_orchestrator.submit("ls")

        assert await ready_orchestrator.submit("ls") is True
        assert mock_remote.explain_command.await_count == 2


class TestLeakedKey:
    async def test_leaked_blocks_until_selection(self, ready_orchestrator, mock_remote, credential_provider):
        fail_with(mock_remote, KEY_LEAKED)
        await ready_orchestrator.submit("aws s3 ls")
        blocked = ready_orchestrator.snapshot

        assert await ready_orchestrator.submit("aws s3 ls") is False
        assert await ready_orchestrator.use_quick_template("kubectl get pods") is False
        assert ready_orchestrator.snapshot.error_kind is ErrorKind.LEAKED
        assert ready_orchestrator.snapshot.state == blocked.state
        assert mock_remote.explain_command.await_count == 1

        assert await ready_orchestrator.request_credential_selection() is True

        snapshot = ready_orchestrator.snapshot
        assert isinstance(snapshot.state, Idle)
        assert snapshot.has_credential is True
        assert snapshot.can_submit is True
        assert credential_provider.select_calls == 1

    async def test_credential_selected_event_clears_leak(self, ready_orchestrator, mock_remote):
        fail_with(mock_remote, KEY_LEAKED)
        await ready_orchestrator.submit("aws s3 ls")

        ready_orchestrator.credential_selected()

        assert isinstance(ready_orchestrator.snapshot.state, Idle)
        mock_remote.explain_command.side_effect = None
        assert await ready_orchestrator.submit("aws s3 ls") is True


class TestCredentialSelection:
    async def test_selection_recovers_from_auth(self, ready_orchestrator, mock_remote):
        fail_with(mock_remote, KEY_AUTH_REQUIRED)
        await ready_orchestrator.submit("ls")

        assert await ready_orchestrator.request_credential_selection() is True
        assert ready_orchestrator.snapshot.has_credential is True
        assert ready_orchestrator.snapshot.error_kind is ErrorKind.NONE

    async def test_selection_unavailable_keeps_state(self, ready_orchestrator, mock_remote, credential_provider):
        credential_provider.supports_selection = False
        fail_with(mock_remote, KEY_LEAKED)
        await ready_orchestrator.submit("ls")
        before = ready_orchestrator.snapshot

        assert await ready_orchestrator.request_credential_selection() is True

        assert ready_orchestrator.snapshot is before
        assert ready_orchestrator.snapshot.is_blocked
        assert credential_provider.select_calls == 0

    async def test_selection_unavailable_without_credential(self, orchestrator, credential_provider):
        credential_provider.supports_selection = False
        credential_provider.selected = False

        assert await orchestrator.request_credential_selection() is False
        assert orchestrator.snapshot.has_credential is False

    async def test_selection_during_loading_lets_request_finish(self, ready_orchestrator, mock_remote, explanation_json):
        release = asyncio.Event()

        async def slow_explain(query):
            await release.wait()
            return explanation_json

        mock_remote.explain_command.side_effect = slow_explain
        pending = asyncio.create_task(ready_orchestrator.submit("aws s3 ls"))
        await asyncio.sleep(0)

        await ready_orchestrator.request_credential_selection()
        assert ready_orchestrator.snapshot.is_loading

        release.set()
        await pending

        assert isinstance(ready_orchestrator.snapshot.state, SuccessDisplay)
        assert ready_orchestrator.snapshot.has_credential is True


class TestQuickTemplateAndListeners:
    async def test_use_quick_template(self, ready_orchestrator, mock_remote):
        assert await ready_orchestrator.use_quick_template("kubectl get pods -n kube-system")

        assert ready_orchestrator.snapshot.query == "kubectl get pods -n kube-system"
        mock_remote.explain_command.assert_awaited_once_with(
            "kubectl get pods -n kube-system"
        )

    async def test_unsubscribe(self, ready_orchestrator):
        listener = Mock()
        unsubscribe = ready_orchestrator.subscribe(listener)
        ready_orchestrator.set_query("a")
        unsubscribe()
        ready_orchestrator.set_query("b")

        listener.assert_called_once()
        assert listener.call_args[0][0].query == "a"
