"""
Decoding of remote explanation payloads.

The service answers with a JSON object carrying ``issue``, ``cause``,
``solution`` and ``examples``. Anything else in the object is ignored.
"""

import json
import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from cloudecode.explainer.errors import MalformedResponseError
from cloudecode.models.explanation_models import ExplanationResult

logger = logging.getLogger(__name__)

RawPayload = Union[str, bytes, Mapping[str, Any]]


def parse(raw: RawPayload) -> ExplanationResult:
    """
    Decode a raw payload into an ExplanationResult.

    Args:
        raw (RawPayload): JSON text or an already decoded mapping.

    Returns:
        ExplanationResult: The decoded explanation. Field values are passed
        through untouched.

    Raises:
        MalformedResponseError: If the payload is not a JSON object or a
            required field is missing or of the wrong type.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to decode API response: {e}")
            raise MalformedResponseError(f"Failed to parse API response: {e}") from e

    if not isinstance(raw, Mapping):
        raise MalformedResponseError(
            f"Failed to parse API response: expected an object, "
            f"got {type(raw).__name__}"
        )

    try:
        return ExplanationResult.model_validate(dict(raw))
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) for error in e.errors()
        )
        logger.error(f"API response failed validation: {fields}")
        raise MalformedResponseError(
            f"Failed to parse API response: invalid or missing {fields}"
        ) from e
