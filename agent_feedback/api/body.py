"""Bounded request body readers for the write endpoints.

Bodies are streamed and rejected with 413 as soon as they pass the route's
limit, before anything is decoded or handed to the engines.
"""

import json
import logging
from typing import Any, Dict, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from agent_feedback.api.errors import field_errors_from_pydantic
from agent_feedback.lib.exceptions import FieldError, PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_body_with_limit(request: Request, max_bytes: int) -> bytes:
    """Read the whole request body, stopping once it exceeds ``max_bytes``.

    Raises:
        PayloadTooLargeError: Declared or received length is over the limit
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_bytes:
        logger.warning("Rejected %s byte body on %s (limit %s)", declared, request.url.path, max_bytes)
        raise PayloadTooLargeError(max_bytes)

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            logger.warning("Rejected streamed body on %s after %s bytes (limit %s)", request.url.path, received, max_bytes)
            raise PayloadTooLargeError(max_bytes)
        chunks.append(chunk)
    return b"".join(chunks)


def decode_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError([FieldError("body", "Request body must be UTF-8")]) from e


def parse_json_model(raw: bytes, model: Type[ModelT]) -> ModelT:
    """Decode ``raw`` as a JSON object and validate it against ``model``.

    An empty body validates as ``{}``.

    Raises:
        ValidationError: Undecodable body, invalid JSON or a schema violation
    """
    text = decode_text(raw)
    try:
        data: Dict[str, Any] = json.loads(text) if text.strip() else {}
    except (ValueError, RecursionError) as e:
        raise ValidationError([FieldError("body", "Request body must be valid JSON")]) from e

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(field_errors_from_pydantic(e.errors())) from e
