import base64
import binascii
import re
from datetime import datetime, timezone
from io import BytesIO
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import EmailStr

from cipherdrop.dependencies import get_current_user, get_evaluator, get_gateway
from cipherdrop.models import User
from cipherdrop.schemas import (
    MAX_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
    ReceivedFileList,
    ReceivedFileOut,
    RetrieveFile,
    SentFileList,
    SentFileOut,
)
from cipherdrop.services.access import AccessEvaluator
from cipherdrop.services.gateway import StorageGateway
from cipherdrop.services.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, total_pages

router = APIRouter(prefix="/files", tags=["Files"])


def _decode_b64(value: str, field: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail=f"'{field}' must be valid base64")


def _content_disposition(file_name: str) -> str:
    # Header values go out as latin-1; the real name travels RFC 5987 encoded.
    name = re.sub(r'["\r\n]', "", file_name) or "file"
    fallback = name.encode("ascii", "replace").decode("ascii").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name, safe='')}"


@router.post("/upload", status_code=201)
def upload_file(
    file: UploadFile = File(...),
    recipient_email: EmailStr = Form(...),
    password: str = Form(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH),
    expiration_date: datetime = Form(...),
    encrypted_key: str = Form(..., min_length=1),
    iv: str = Form(..., min_length=1),
    file_size: int | None = Form(default=None, ge=0),
    current_user: User = Depends(get_current_user),
    gateway: StorageGateway = Depends(get_gateway),
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    if expiration_date.tzinfo is None:
        raise HTTPException(status_code=400, detail="Expiration date must include a UTC offset")
    if expiration_date <= datetime.now(timezone.utc):
        raise HTTPException(status_code=400, detail="Expiration date must be in the future.")

    recipient = gateway.find_user_by_email(recipient_email)
    if recipient is None:
        raise HTTPException(status_code=404, detail="Recipient user not found")
    if recipient.id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot share a file with yourself")
    if recipient.public_key is None:
        raise HTTPException(status_code=400, detail="Recipient has not enrolled a public key")

    payload = file.file.read()
    if not payload:
        raise HTTPException(status_code=400, detail="File is empty")

    link = gateway.store_encrypted_file(
        owner_id=current_user.id,
        file_name=file.filename or "file",
        file_size=file_size if file_size is not None else len(payload),
        recipient_id=recipient.id,
        access_password=evaluator.seal_password(password),
        expiration_date=expiration_date,
        encrypted_key=_decode_b64(encrypted_key, "encrypted_key"),
        encrypted_payload=payload,
        iv=_decode_b64(iv, "iv"),
    )

    return {
        "status": "success",
        "message": "File uploaded and encrypted successfully",
        "shared_id": str(link.id),
    }


@router.post("/retrieve")
def retrieve_file(
    body: RetrieveFile,
    current_user: User = Depends(get_current_user),
    evaluator: AccessEvaluator = Depends(get_evaluator),
):
    _, rec = evaluator.authorize(body.shared_id, current_user.id, body.password)

    return StreamingResponse(
        BytesIO(rec.encrypted_payload),
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": _content_disposition(rec.file_name),
            "X-Encrypted-Key": base64.b64encode(rec.encrypted_key).decode("ascii"),
            "X-IV": base64.b64encode(rec.iv).decode("ascii"),
        },
    )


@router.get("/sent", response_model=SentFileList)
def list_sent_files(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    gateway: StorageGateway = Depends(get_gateway),
):
    files, total = gateway.list_sent_files(current_user.id, page, limit)
    return SentFileList(
        files=[SentFileOut.model_validate(f) for f in files],
        results=total,
        page=page,
        total_pages=total_pages(total, limit),
    )


@router.get("/received", response_model=ReceivedFileList)
def list_received_files(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    gateway: StorageGateway = Depends(get_gateway),
):
    files, total = gateway.list_received_files(current_user.id, page, limit)
    return ReceivedFileList(
        files=[ReceivedFileOut.model_validate(f) for f in files],
        results=total,
        page=page,
        total_pages=total_pages(total, limit),
    )
