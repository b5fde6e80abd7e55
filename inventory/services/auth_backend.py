"""Credential exchange: turn a username/password into a bearer token."""

from abc import ABC, abstractmethod

import pydantic
import structlog

from inventory.errors import (
    AuthError,
    AuthErrorReason,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from inventory.models.auth import AuthResponse, LoginRequest, RegisterRequest
from inventory.models.user import AppUser
from inventory.services.api_client import ApiClient
from inventory.services.snapshot_repository import LocalUserRepository
from inventory.services.token_service import TokenService

logger = structlog.get_logger(__name__)


class AuthBackend(ABC):
    """Where credentials are checked."""

    @abstractmethod
    async def login(self, request: LoginRequest) -> AuthResponse:
        """Exchange credentials for a token.

        Raises:
            AuthError: INVALID_CREDENTIALS or NETWORK_FAILURE
        """

    @abstractmethod
    async def register(self, request: RegisterRequest) -> AuthResponse:
        """Create an account and sign it in.

        Raises:
            AuthError: INVALID_CREDENTIALS (rejected) or NETWORK_FAILURE
        """


class RemoteAuthBackend(AuthBackend):
    """POST /auth/login and /auth/register on the backend API."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def _exchange(self, path: str, body: dict, default_message: str) -> AuthResponse:
        try:
            data = await self.api.post(path, json=body, authenticated=False)
        except AuthError as e:
            raise AuthError(AuthErrorReason.INVALID_CREDENTIALS, e.detail or default_message)
        except NotFoundError as e:
            raise AuthError(AuthErrorReason.NETWORK_FAILURE, e.message)
        except NetworkError as e:
            # 4xx carries the backend's explanation, 5xx/transport do not
            if e.status_code is not None and 400 <= e.status_code < 500:
                raise AuthError(AuthErrorReason.INVALID_CREDENTIALS, e.message or default_message)
            raise AuthError(AuthErrorReason.NETWORK_FAILURE)

        try:
            return AuthResponse.model_validate(data)
        except pydantic.ValidationError as e:
            logger.error("auth_response_invalid", path=path, error=str(e))
            raise AuthError(AuthErrorReason.NETWORK_FAILURE, "The server returned an unexpected response")

    async def login(self, request: LoginRequest) -> AuthResponse:
        return await self._exchange(
            "/auth/login",
            request.model_dump(),
            "Invalid username or password",
        )

    async def register(self, request: RegisterRequest) -> AuthResponse:
        return await self._exchange(
            "/auth/register",
            {
                "username": request.username,
                "email": request.email,
                "password": request.password,
                "role": request.role.value,
            },
            "Registration failed, please try again",
        )


class LocalAuthBackend(AuthBackend):
    """Checks bcrypt hashes from the local snapshot and issues signed tokens."""

    def __init__(self, users: LocalUserRepository, token_service: TokenService):
        self.users = users
        self.token_service = token_service

    def _issue(self, user: AppUser) -> AuthResponse:
        token = self.token_service.create_access_token(user.id, user.username, user.role)
        return AuthResponse(token=token, username=user.username, role=user.role, id=user.id)

    async def login(self, request: LoginRequest) -> AuthResponse:
        try:
            user = self.users.find_by_username(request.username)
            password_hash = self.users.password_hash_for(user.id) if user else None
        except NetworkError as e:
            raise AuthError(AuthErrorReason.NETWORK_FAILURE, e.message)

        if user is None or password_hash is None:
            raise AuthError(AuthErrorReason.INVALID_CREDENTIALS)
        if not self.token_service.verify_password(request.password, password_hash):
            raise AuthError(AuthErrorReason.INVALID_CREDENTIALS)

        return self._issue(user)

    async def register(self, request: RegisterRequest) -> AuthResponse:
        user = AppUser(username=request.username, email=request.email, role=request.role)
        try:
            created = self.users.add(user, password=request.password)
        except ValidationError as e:
            raise AuthError(AuthErrorReason.INVALID_CREDENTIALS, e.message)
        except NetworkError as e:
            raise AuthError(AuthErrorReason.NETWORK_FAILURE, e.message)
        return self._issue(created)
