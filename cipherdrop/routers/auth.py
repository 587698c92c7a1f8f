from fastapi import APIRouter, Depends

from cipherdrop.auth import create_access_token
from cipherdrop.dependencies import get_gateway, get_hasher
from cipherdrop.errors import AuthenticationError
from cipherdrop.schemas import LoginUser, RegisterUser, UserOut
from cipherdrop.security import PasswordHasher
from cipherdrop.services.gateway import StorageGateway

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=201)
def register(
    body: RegisterUser,
    gateway: StorageGateway = Depends(get_gateway),
    hasher: PasswordHasher = Depends(get_hasher),
):
    user = gateway.create_user(body.name, body.email, hasher.hash(body.password))
    return {"status": "success", "data": {"user": UserOut.model_validate(user)}}


@router.post("/login")
def login(
    body: LoginUser,
    gateway: StorageGateway = Depends(get_gateway),
    hasher: PasswordHasher = Depends(get_hasher),
):
    user = gateway.find_user_by_email(body.email)
    if user is None or not hasher.verify(body.password, user.password):
        raise AuthenticationError("Email or password is wrong")
    return {"status": "success", "token": create_access_token(user.id)}
