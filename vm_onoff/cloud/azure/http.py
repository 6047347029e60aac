"""Request execution helpers shared by the Azure clients."""

from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from vm_onoff.cloud.errors import DecodeError, ServerError, TransportError

ModelT = TypeVar("ModelT", bound=BaseModel)


def check_status(response: httpx.Response) -> None:
    """Raise ServerError unless the response has a 2xx status."""
    if not response.is_success:
        raise ServerError(response.status_code, url=str(response.request.url))


async def send(client: httpx.AsyncClient, request: httpx.Request) -> httpx.Response:
    """Send a request, mapping transport failures and non-2xx statuses."""
    try:
        response = await client.send(request)
    except httpx.TransportError as e:
        raise TransportError(f"{request.method} {request.url}: {e}") from e
    check_status(response)
    return response


def parse_json(response: httpx.Response, model: type[ModelT]) -> ModelT:
    """Decode a JSON body into the given model."""
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        raise DecodeError(f"Unexpected response body from {response.request.url}: {e}") from e
