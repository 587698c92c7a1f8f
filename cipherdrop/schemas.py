import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 64


class RegisterUser(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    password_confirm: str = Field(
        min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH, alias="passwordConfirm"
    )

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("passwords do not match")
        return self


class LoginUser(BaseModel):
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)


class NameUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class PasswordUpdate(BaseModel):
    old_password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    new_password_confirm: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)

    @model_validator(mode="after")
    def new_passwords_match(self):
        if self.new_password != self.new_password_confirm:
            raise ValueError("new passwords do not match")
        return self


class PublicKeyUpdate(BaseModel):
    public_key: str = Field(min_length=1)


class RetrieveFile(BaseModel):
    shared_id: uuid.UUID
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    public_key: str | None = None
    created_at: datetime
    updated_at: datetime


class SentFileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    file_id: uuid.UUID
    file_name: str
    recipient_email: str
    expiration_date: datetime
    created_at: datetime


class ReceivedFileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    shared_id: uuid.UUID
    file_id: uuid.UUID
    file_name: str
    sender_email: str | None = None
    expiration_date: datetime
    created_at: datetime


class SentFileList(BaseModel):
    status: str = "success"
    files: list[SentFileOut]
    results: int
    page: int
    total_pages: int


class ReceivedFileList(BaseModel):
    status: str = "success"
    files: list[ReceivedFileOut]
    results: int
    page: int
    total_pages: int
