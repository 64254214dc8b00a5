import pytest
from starlette.requests import Request

from core.exceptions import (
    SERVER_ERROR_MESSAGE,
    NotFoundException,
    StorageError,
    StoreConflict,
    UpstreamError,
    ValidationException,
)
from middleware import error_handler


def _request():
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/predictions",
        "headers": [],
        "query_string": b"",
        "client": ("203.0.113.7", 51000),
    })


@pytest.fixture(autouse=True)
def reset_alert_hook():
    yield
    error_handler.register_alert_hook(None)


@pytest.mark.parametrize(
    "exc, status, message",
    [
        (ValidationException("Name is required (max 30 chars)."), 400, "Name is required (max 30 chars)."),
        (NotFoundException("Player not found."), 404, "Player not found."),
        (StorageError("Failed to write /data/predictions.json"), 500, SERVER_ERROR_MESSAGE),
        (UpstreamError("GitHub read failed: 502"), 500, SERVER_ERROR_MESSAGE),
        (StoreConflict("GitHub write failed: 409"), 500, SERVER_ERROR_MESSAGE),
    ],
)
def test_public_messages(exc, status, message):
    assert exc.http_status == status
    assert exc.public_message == message


@pytest.mark.asyncio
async def test_server_errors_reach_alert_hook():
    seen = []

    async def hook(request, exc):
        seen.append(exc)

    error_handler.register_alert_hook(hook)
    request = _request()
    exc = UpstreamError("GitHub write failed: 500")

    response = await error_handler._handle_app_exception(request, exc)

    assert response.status_code == 500
    assert seen == [exc]


@pytest.mark.asyncio
async def test_client_errors_skip_alert_hook():
    seen = []

    async def hook(request, exc):
        seen.append(exc)

    error_handler.register_alert_hook(hook)

    response = await error_handler._handle_app_exception(
        _request(), NotFoundException("Player not found.")
    )

    assert response.status_code == 404
    assert seen == []


@pytest.mark.asyncio
async def test_failing_alert_hook_does_not_mask_response():
    async def hook(request, exc):
        raise RuntimeError("sentry down")

    error_handler.register_alert_hook(hook)

    response = await error_handler.handle_unhandled_exception(
        _request(), RuntimeError("boom")
    )

    assert response.status_code == 500
    assert response.body == b'{"error":"Server error. Please try again."}'
