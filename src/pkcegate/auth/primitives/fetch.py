"""Fetch helper that validates identity provider responses.

Every response consumed from the identity provider goes through
``fetch_validated`` so schema mismatches surface as a single, catchable
error kind that remembers which URL produced the bad payload.
"""

from __future__ import annotations

import logging
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from pkcegate.auth.models.errors import ResponseValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_payload(model: type[ModelT], payload: object, source: str) -> ModelT:
    """Validate a decoded JSON payload against ``model``.

    Logs the validation errors together with the source URL before raising.

    Raises:
        ResponseValidationError: If the payload does not match the model
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.error(
            f"Invalid {model.__name__} from {source}: {e.error_count()} error(s) "
            f"{e.errors(include_url=False, include_input=False)}"
        )
        raise ResponseValidationError(
            f"Invalid {model.__name__} from {source}: {e}", source=source
        ) from e


async def fetch_validated(
    http_client: httpx.AsyncClient, model: type[ModelT], request: httpx.Request
) -> ModelT:
    """Send ``request``, decode the JSON body and validate it against ``model``.

    Args:
        http_client: Client used to send the request
        model: Pydantic model describing the expected body
        request: Prepared request

    Returns:
        The validated model instance

    Raises:
        httpx.HTTPError: On transport failure or a non-2xx status
        ValueError: If the body is not JSON
        ResponseValidationError: If the body does not match the model
    """
    source = str(request.url)
    response = await http_client.send(request)
    response.raise_for_status()
    return validate_payload(model, response.json(), source)
