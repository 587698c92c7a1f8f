from fastapi import APIRouter, Depends, HTTPException, Query

from cipherdrop.dependencies import get_current_user, get_gateway, get_hasher
from cipherdrop.models import User
from cipherdrop.schemas import NameUpdate, PasswordUpdate, PublicKeyUpdate, UserOut
from cipherdrop.security import PasswordHasher
from cipherdrop.services.gateway import StorageGateway

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"status": "success", "data": {"user": UserOut.model_validate(current_user)}}


@router.put("/name")
def update_name(
    body: NameUpdate,
    current_user: User = Depends(get_current_user),
    gateway: StorageGateway = Depends(get_gateway),
):
    user = gateway.update_user_name(current_user.id, body.name)
    return {"status": "success", "data": {"user": UserOut.model_validate(user)}}


@router.put("/password")
def update_password(
    body: PasswordUpdate,
    current_user: User = Depends(get_current_user),
    gateway: StorageGateway = Depends(get_gateway),
    hasher: PasswordHasher = Depends(get_hasher),
):
    if not hasher.verify(body.old_password, current_user.password):
        raise HTTPException(status_code=400, detail="Old password is incorrect")
    gateway.update_user_password(current_user.id, hasher.hash(body.new_password))
    return {"status": "success", "message": "Password updated Successfully"}


@router.put("/public-key")
def save_public_key(
    body: PublicKeyUpdate,
    current_user: User = Depends(get_current_user),
    gateway: StorageGateway = Depends(get_gateway),
):
    gateway.set_user_public_key(current_user.id, body.public_key)
    return {"status": "success", "message": "Public key saved"}


@router.get("/search")
def search_by_email(
    query: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    gateway: StorageGateway = Depends(get_gateway),
):
    users = gateway.search_users_by_email(current_user.id, f"%{query}%")
    return {"status": "success", "emails": [{"email": user.email} for user in users]}
