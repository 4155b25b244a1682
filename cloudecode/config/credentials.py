"""
Credential providers and the credential gate.

A credential provider answers "is a usable API key selected?" and, when it
can, lets the user pick a new one. Two variants exist:

- KeyringCredentialProvider: interactive. Keys are entered at a prompt and
  stored in the system keyring.
- EnvironmentCredentialProvider: ambient. The key comes from the
  environment (or an explicit --api-key override) and cannot be changed
  from inside the application.

The variant is chosen once at startup by create_credential_provider().
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from cloudecode.config import api_manager

logger = logging.getLogger(__name__)

KeyPrompt = Callable[[], Optional[str]]


class CredentialSelectionError(Exception):
    """Raised when an interactive credential selection does not complete."""


class CredentialProvider(ABC):
    """Source of the API key used for remote explanation requests."""

    #: Whether open_select_credential() can change the selected key.
    supports_selection = False

    @abstractmethod
    async def has_selected_credential(self) -> bool:
        """Return True when a usable key is currently selected."""

    @abstractmethod
    def get_api_key(self) -> Optional[str]:
        """Return the currently selected key, if any."""

    async def open_select_credential(self) -> None:
        """Let the user select a key. No-op for providers without selection."""
        return None


class EnvironmentCredentialProvider(CredentialProvider):
    """Ambient provider backed by OPENAI_API_KEY or an explicit override."""

    def __init__(self, api_key: Optional[str] = None):
        self._override = api_key

    def get_api_key(self) -> Optional[str]:
        if self._override:
            return self._override
        return api_manager.get_env_api_key()

    async def has_selected_credential(self) -> bool:
        return bool(self.get_api_key())


class KeyringCredentialProvider(CredentialProvider):
    """Interactive provider storing keys in the system keyring."""

    supports_selection = True

    def __init__(self, prompt: KeyPrompt):
        """
        Args:
            prompt (KeyPrompt): Blocking callable asking the user for a key.
                Returns None when the user cancels.
        """
        self._prompt = prompt

    def get_api_key(self) -> Optional[str]:
        return api_manager.get_api_key()

    async def has_selected_credential(self) -> bool:
        api_key = await asyncio.to_thread(self.get_api_key)
        return bool(api_key)

    async def open_select_credential(self) -> None:
        new_key = await asyncio.to_thread(self._prompt)
        if not new_key:
            raise CredentialSelectionError("Credential selection was cancelled")

        new_key = new_key.strip()
        if not api_manager.is_api_key_valid(new_key):
            raise CredentialSelectionError("Invalid API key format")

        saved = await asyncio.to_thread(api_manager.save_api_key, new_key)
        if not saved:
            raise CredentialSelectionError("Failed to save API key to the keyring")

        logger.info(f"Selected API key {api_manager.mask_api_key(new_key)}")


def create_credential_provider(
    mode: str = "auto",
    prompt: Optional[KeyPrompt] = None,
    api_key: Optional[str] = None,
) -> CredentialProvider:
    """
    Choose the credential provider variant for this session.

    Args:
        mode (str): "auto", "keyring" or "environment".
        prompt (Optional[KeyPrompt]): Interactive key prompt. Without one the
            interactive variant cannot be used.
        api_key (Optional[str]): Explicit key override. Forces the ambient
            variant holding that key.

    Returns:
        CredentialProvider: The provider for the rest of the session.
    """
    if api_key:
        logger.debug("Using explicit API key override")
        return EnvironmentCredentialProvider(api_key=api_key)

    if mode == "environment" or prompt is None:
        return EnvironmentCredentialProvider()

    if mode == "keyring" or api_manager.keyring_available():
        return KeyringCredentialProvider(prompt)

    logger.debug("No keyring backend available, using environment credentials")
    return EnvironmentCredentialProvider()


class CredentialGate:
    """Decides whether remote explanation calls are currently permitted."""

    def __init__(self, provider: CredentialProvider):
        self.provider = provider

    @property
    def supports_selection(self) -> bool:
        return self.provider.supports_selection

    async def check_selected(self) -> bool:
        """
        Ask the provider whether a credential is selected.

        Never raises. Errors and non-boolean answers count as "not selected".
        """
        try:
            selected = await self.provider.has_selected_credential()
        except Exception as e:
            logger.warning(f"Credential check failed: {e}")
            return False

        if not isinstance(selected, bool):
            logger.debug(f"Ambiguous credential check result: {selected!r}")
            return False
        return selected

    async def request_selection(self, prior: bool) -> bool:
        """
        Run the provider's interactive credential selection.

        Args:
            prior (bool): Credential state before the request.

        Returns:
            bool: True once selection completes. ``prior`` when the provider
            has no interactive path or the selection did not complete.
        """
        if not self.provider.supports_selection:
            logger.debug("Credential selection is not available for this provider")
            return prior

        try:
            await self.provider.open_select_credential()
        except CredentialSelectionError as e:
            logger.warning(f"Credential selection did not complete: {e}")
            return prior
        except Exception as e:
            logger.warning(f"Credential selection failed: {e}")
            return prior

        return True
