"""Unit tests for ApiClient status-code mapping, using httpx.MockTransport."""

import httpx
import pytest

from inventory.errors import AuthError, AuthErrorReason, NetworkError, NotFoundError
from inventory.services.api_client import ApiClient


def _client(settings, handler, token="tok-123"):
    return ApiClient(
        settings,
        token_provider=lambda: token,
        transport=httpx.MockTransport(handler),
    )


class TestRequests:
    """Successful requests."""

    async def test_sends_bearer_token(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["authorization"] = request.headers.get("Authorization")
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"ok": True})

        client = _client(settings, handler)
        assert await client.get("/equipments", params={"page": 1}) == {"ok": True}
        await client.close()

        assert seen["authorization"] == "Bearer tok-123"
        assert seen["url"] == "http://localhost:5000/api/equipments?page=1"

    async def test_unauthenticated_call_has_no_header(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["authorization"] = request.headers.get("Authorization")
            return httpx.Response(200, json={})

        client = _client(settings, handler)
        await client.post("/auth/login", json={"username": "a"}, authenticated=False)
        assert seen["authorization"] is None

    async def test_no_header_without_token(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["authorization"] = request.headers.get("Authorization")
            return httpx.Response(200, json={})

        client = _client(settings, handler, token=None)
        await client.get("/users")
        assert seen["authorization"] is None

    async def test_empty_body_returns_none(self, settings):
        client = _client(settings, lambda request: httpx.Response(204))
        assert await client.delete("/equipments/e-1") is None


class TestErrorMapping:
    """Non-2xx responses and transport failures."""

    async def test_401_is_unauthorized(self, settings):
        client = _client(settings, lambda r: httpx.Response(401, json={"message": "Token invalide"}))
        with pytest.raises(AuthError) as exc_info:
            await client.get("/equipments")
        assert exc_info.value.reason == AuthErrorReason.UNAUTHORIZED
        assert exc_info.value.message == "Token invalide"
        assert exc_info.value.invalidates_session is True

    async def test_403_is_forbidden(self, settings):
        client = _client(settings, lambda r: httpx.Response(403))
        with pytest.raises(AuthError) as exc_info:
            await client.get("/users")
        assert exc_info.value.reason == AuthErrorReason.FORBIDDEN

    async def test_404_is_not_found(self, settings):
        client = _client(settings, lambda r: httpx.Response(404, json={"message": "Équipement non trouvé"}))
        with pytest.raises(NotFoundError, match="non trouvé"):
            await client.get("/equipments/missing")

    async def test_500_is_network_error_with_status(self, settings):
        client = _client(settings, lambda r: httpx.Response(500, text="boom"))
        with pytest.raises(NetworkError) as exc_info:
            await client.get("/equipments")
        assert exc_info.value.status_code == 500
        assert "500" in exc_info.value.message

    async def test_400_carries_backend_message(self, settings):
        client = _client(settings, lambda r: httpx.Response(400, json={"message": "Nom requis"}))
        with pytest.raises(NetworkError) as exc_info:
            await client.post("/equipments", json={})
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Nom requis"

    async def test_connection_failure_is_network_error(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(settings, handler)
        with pytest.raises(NetworkError) as exc_info:
            await client.get("/equipments")
        assert exc_info.value.status_code is None

    async def test_timeout_is_network_error(self, settings):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        client = _client(settings, handler)
        with pytest.raises(NetworkError, match="too long"):
            await client.get("/equipments")

    async def test_unreadable_body_is_network_error(self, settings):
        client = _client(settings, lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(NetworkError, match="unreadable"):
            await client.get("/equipments")
