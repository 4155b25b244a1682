"""
Shared test fixtures for CloudDecode tests.

This module contains pytest fixtures that are shared across all test modules,
including fakes for the credential and remote collaborators and sample
payloads.
"""

import json
import os
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, patch

import pytest
from faker import Faker

from cloudecode.config.credentials import CredentialGate, CredentialProvider
from cloudecode.explainer.explanation_client import ExplanationClient
from cloudecode.models.explanation_models import ExplanationResult
from cloudecode.orchestrator.request_orchestrator import RequestOrchestrator

fake = Faker()


# ============================================================================
# API Key Fixtures
# ============================================================================


@pytest.fixture
def valid_api_key() -> str:
    """Return a valid OpenAI API key format for testing."""
    return "sk-" + "a" * 48


@pytest.fixture
def invalid_api_key() -> str:
    """Return an invalid API key format for testing."""
    return "invalid-key-format"


@pytest.fixture
def mock_keyring():
    """Mock the keyring module for testing."""
    with (
        patch("keyring.get_password") as mock_get,
        patch("keyring.set_password") as mock_set,
        patch("keyring.delete_password") as mock_delete,
    ):
        mock_get.return_value = None
        mock_set.return_value = None
        mock_delete.return_value = None

        yield {"get": mock_get, "set": mock_set, "delete": mock_delete}


@pytest.fixture
def clean_environment():
    """Provide an environment without OPENAI_API_KEY."""
    with patch.dict(os.environ, {}, clear=False):
        os.environ.pop("OPENAI_API_KEY", None)
        yield


# ============================================================================
# Payload Fixtures
# ============================================================================


@pytest.fixture
def explanation_payload() -> Dict[str, Any]:
    """Return a well-formed explanation payload as the service sends it."""
    return {
        "issue": "Lists S3 buckets",
        "cause": "aws s3 ls calls ListBuckets when no path is given.",
        "solution": "Add --recursive with a bucket path to list objects.",
        "examples": ["aws s3 ls # lists buckets", "aws s3 rm s3://x"],
    }


@pytest.fixture
def explanation_json(explanation_payload) -> str:
    return json.dumps(explanation_payload)


@pytest.fixture
def explanation_result(explanation_payload) -> ExplanationResult:
    return ExplanationResult(**explanation_payload)


@pytest.fixture
def random_explanation_payload() -> Dict[str, Any]:
    """A payload with generated text, for tests that only care about shape."""
    return {
        "issue": fake.sentence(),
        "cause": fake.paragraph(),
        "solution": fake.sentence(),
        "examples": [f"kubectl get {fake.word()} # {fake.sentence()}" for _ in range(3)],
    }


# ============================================================================
# Collaborator Fakes
# ============================================================================


class FakeCredentialProvider(CredentialProvider):
    """In-memory credential provider with call counters."""

    def __init__(self, selected: bool = True, supports_selection: bool = True):
        self.selected = selected
        self.supports_selection = supports_selection
        self.select_calls = 0
        self.api_key: Optional[str] = "sk-" + "f" * 48 if selected else None

    async def has_selected_credential(self) -> bool:
        return self.selected

    def get_api_key(self) -> Optional[str]:
        return self.api_key

    async def open_select_credential(self) -> None:
        self.select_calls += 1
        self.selected = True
        self.api_key = "sk-" + "n" * 48


@pytest.fixture
def credential_provider() -> FakeCredentialProvider:
    return FakeCredentialProvider()


@pytest.fixture
def mock_remote(explanation_json):
    """Remote explainer returning a valid payload; inspect .explain_command."""
    remote = AsyncMock()
    remote.explain_command = AsyncMock(return_value=explanation_json)
    return remote


@pytest.fixture
def orchestrator(credential_provider, mock_remote) -> RequestOrchestrator:
    return RequestOrchestrator(
        CredentialGate(credential_provider), ExplanationClient(mock_remote)
    )


@pytest.fixture
async def ready_orchestrator(orchestrator) -> RequestOrchestrator:
    """Orchestrator after its startup credential check succeeded."""
    await orchestrator.refresh_credentials()
    return orchestrator
