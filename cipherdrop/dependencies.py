from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cipherdrop.auth import decode_token
from cipherdrop.errors import AuthenticationError
from cipherdrop.models import User
from cipherdrop.security import PasswordHasher
from cipherdrop.services.access import AccessEvaluator
from cipherdrop.services.gateway import StorageGateway

bearer_scheme = HTTPBearer(auto_error=False)


def get_gateway(request: Request) -> StorageGateway:
    return request.app.state.gateway


def get_evaluator(request: Request) -> AccessEvaluator:
    return request.app.state.evaluator


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    gateway: StorageGateway = Depends(get_gateway),
) -> User:
    if credentials is None:
        raise AuthenticationError("You are not logged in, please provide a token")

    user = gateway.find_user_by_id(decode_token(credentials.credentials))
    if user is None:
        raise AuthenticationError("User belonging to this token no longer exists")
    return user
