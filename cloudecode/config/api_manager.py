"""
API key management for CloudDecode.

This module handles secure storage and retrieval of the OpenAI API key
using the system keyring, with an environment variable fallback.
"""

import logging
import os
from typing import Optional

import keyring
from keyring.errors import KeyringError, NoKeyringError, PasswordDeleteError

SERVICE_NAME = "cloudecode"
API_KEY_NAME = "openai_api_key"
ENV_VAR_NAME = "OPENAI_API_KEY"

logger = logging.getLogger(__name__)


def keyring_available() -> bool:
    """
    Check whether a usable keyring backend is installed.

    Returns:
        bool: False when only the fail/null backends are present.
    """
    try:
        backend = keyring.get_keyring()
    except KeyringError as e:
        logger.debug(f"Keyring backend not available: {e}")
        return False

    priority = getattr(backend, "priority", 0)
    try:
        return float(priority) > 0
    except (TypeError, ValueError):
        return False


def get_stored_api_key() -> Optional[str]:
    """
    Retrieve the API key stored in the system keyring.

    Returns:
        str or None: The stored key, or None when absent or no backend exists.
    """
    try:
        return keyring.get_password(SERVICE_NAME, API_KEY_NAME)
    except NoKeyringError as e:
        logger.debug(f"Keyring backend not available: {e}")
        return None


def get_env_api_key() -> Optional[str]:
    """Return the API key from the environment, if set and non-blank."""
    api_key = os.environ.get(ENV_VAR_NAME)
    if api_key and api_key.strip():
        return api_key
    return None


def get_api_key() -> Optional[str]:
    """
    Retrieve the OpenAI API key from keyring or environment variable.

    Returns:
        str or None: The API key if found, None otherwise.
    """
    api_key = get_stored_api_key()

    if not api_key:
        api_key = get_env_api_key()
        if api_key:
            logger.info(f"Using API key from environment variable {ENV_VAR_NAME}")

    return api_key


def save_api_key(api_key: str) -> bool:
    """
    Save the OpenAI API key to the system keyring.

    Args:
        api_key (str): The API key to save.

    Returns:
        bool: True if successful, False otherwise.
    """
    if not api_key or not api_key.strip():
        logger.error("Cannot save empty API key")
        return False

    try:
        keyring.set_password(SERVICE_NAME, API_KEY_NAME, api_key)
    except KeyringError as e:
        logger.error(f"Failed to save API key: {e}")
        return False

    logger.info("API key saved successfully")
    return True


def delete_api_key() -> bool:
    """
    Delete the stored API key from the system keyring.

    Returns:
        bool: True if successful (or nothing was stored), False otherwise.
    """
    try:
        keyring.delete_password(SERVICE_NAME, API_KEY_NAME)
    except PasswordDeleteError:
        logger.info("No API key found to delete")
        return True
    except NoKeyringError:
        return True
    except KeyringError as e:
        logger.error(f"Failed to delete API key: {e}")
        return False

    logger.info("API key deleted successfully")
    return True


def is_api_key_valid(api_key: Optional[str]) -> bool:
    """
    Validate the format of an OpenAI API key.

    Args:
        api_key (str): The API key to validate.

    Returns:
        bool: True if the key format is valid, False otherwise.
    """
    if not api_key or not isinstance(api_key, str):
        return False

    if api_key != api_key.strip():
        return False

    # OpenAI keys start with "sk-" and are at least 43 characters long
    return api_key.startswith("sk-") and len(api_key) >= 43


def mask_api_key(api_key: Optional[str]) -> str:
    """
    Mask an API key for display or logging.

    Args:
        api_key (Optional[str]): The key to mask.

    Returns:
        str: The key with everything but its prefix and last four characters
        hidden.
    """
    if not api_key:
        return ""
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return api_key[:3] + "*" * (len(api_key) - 7) + api_key[-4:]
