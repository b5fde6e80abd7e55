"""HTTP client for the inventory backend API."""

from typing import Any, Callable, Optional

import httpx
import structlog

from inventory.config import Settings, get_settings
from inventory.errors import AuthError, AuthErrorReason, NetworkError, NotFoundError

logger = structlog.get_logger(__name__)

TokenProvider = Callable[[], Optional[str]]


def _error_message(response: httpx.Response, default: Optional[str]) -> Optional[str]:
    """Extract the backend's {message} from an error response."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return body.get("message") or body.get("detail") or default
    return default


class ApiClient:
    """Thin async wrapper over httpx that maps responses onto the error taxonomy.

    - 401 -> AuthError(UNAUTHORIZED), 403 -> AuthError(FORBIDDEN)
    - 404 -> NotFoundError
    - any other non-2xx, timeout or transport failure -> NetworkError
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.token_provider = token_provider
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_base_url.rstrip("/"),
                timeout=httpx.Timeout(self.settings.request_timeout_seconds),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _headers(self, authenticated: bool) -> dict[str, str]:
        if not authenticated or self.token_provider is None:
            return {}
        token = self.token_provider()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        authenticated: bool = True,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty).

        Raises:
            AuthError: On 401/403
            NotFoundError: On 404
            NetworkError: On transport failures and other non-2xx responses
        """
        client = await self._get_client()
        try:
            response = await client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(authenticated),
            )
        except httpx.TimeoutException as e:
            logger.warning("api_request_timeout", method=method, path=path, error=str(e))
            raise NetworkError("The server took too long to respond")
        except httpx.HTTPError as e:
            logger.warning("api_request_failed", method=method, path=path, error=str(e))
            raise NetworkError("Unable to reach the server")

        status = response.status_code
        if status in (401, 403):
            reason = AuthErrorReason.UNAUTHORIZED if status == 401 else AuthErrorReason.FORBIDDEN
            logger.warning("api_auth_rejected", method=method, path=path, status=status)
            raise AuthError(reason, _error_message(response, None))
        if status == 404:
            raise NotFoundError(_error_message(response, "Resource not found"))
        if status >= 400:
            logger.warning("api_request_error", method=method, path=path, status=status)
            raise NetworkError(
                _error_message(response, f"Request failed with status {status}"),
                status_code=status,
            )

        logger.debug("api_request_completed", method=method, path=path, status=status)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise NetworkError("The server returned an unreadable response", status_code=status)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)
