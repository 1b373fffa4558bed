"""Tests for application exception handlers."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from reminder_service.app.exception_handlers import INTERNAL_ERROR_MESSAGE, configure_exception_handlers
from reminder_service.core.exceptions import NotFoundException, TransientStoreError, ValidationError


class Payload(BaseModel):
    count: int


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient]:
    app = FastAPI()
    configure_exception_handlers(app)

    @app.get("/not-found")
    async def not_found() -> None:
        raise NotFoundException("Reminder not found")

    @app.get("/invalid")
    async def invalid() -> None:
        raise ValidationError("Invalid mins parameter: must be a positive integer")

    @app.get("/transient")
    async def transient() -> None:
        raise TransientStoreError("Could not load reminder state")

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("secret internals")

    @app.post("/body")
    async def body(payload: Payload) -> dict:
        return {"count": payload.count}

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.parametrize(
    ("path", "status_code", "error"),
    [
        ("/not-found", 404, "Reminder not found"),
        ("/invalid", 400, "Invalid mins parameter: must be a positive integer"),
        ("/transient", 503, "Could not load reminder state"),
    ],
)
async def test_app_exceptions_render_status_and_message(
    client: AsyncClient, path: str, status_code: int, error: str
) -> None:
    response = await client.get(path)

    assert response.status_code == status_code
    assert response.json() == {"success": False, "error": error}


async def test_unexpected_exception_hides_details(client: AsyncClient) -> None:
    response = await client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": INTERNAL_ERROR_MESSAGE}
    assert "secret" not in response.text


async def test_request_validation_is_400_with_field(client: AsyncClient) -> None:
    response = await client.post("/body", json={"count": "many"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request: count: ")


async def test_unknown_route_uses_same_shape(client: AsyncClient) -> None:
    response = await client.get("/nope")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found"}


async def test_wrong_method(client: AsyncClient) -> None:
    response = await client.delete("/not-found")

    assert response.status_code == 405
    assert response.json()["success"] is False
