# src/flexstore/api/schemas.py
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


# ----------------------------------------
# Auth
# ----------------------------------------
class SignupRequest(BaseModel):
    username: str
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: UUID
    tenant_id: UUID
    username: str
    email: str
    role: str
    created_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    token: str
    user: UserOut

    class Config:
        from_attributes = True


# ----------------------------------------
# Databases and fields
# ----------------------------------------
class DatabaseIn(BaseModel):
    name: str


class FieldIn(BaseModel):
    name: str
    type: str
    options: Optional[list[str]] = None
    relation_database_id: Optional[UUID] = None


class FieldOut(BaseModel):
    id: UUID
    name: str
    type: str
    options: Optional[list[str]] = None
    relation_database_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class DatabaseOut(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    fields: list[FieldOut] = []
    created_at: datetime

    class Config:
        from_attributes = True


# ----------------------------------------
# Records
# ----------------------------------------
class RecordValuesIn(BaseModel):
    values: dict[str, Any] = Field(default_factory=dict)


class ValuePair(BaseModel):
    field: str
    value: Any = None


class RecordOut(BaseModel):
    id: UUID
    database_id: UUID
    values: list[ValuePair]
    created_at: datetime
    updated_at: datetime


class SortIn(BaseModel):
    field: str
    order: str = "asc"


class RecordQueryIn(BaseModel):
    filter: Optional[dict[str, Any]] = None
    sort: Optional[SortIn] = None
    search: Optional[str] = None
    page: Optional[int] = None
    limit: Optional[int] = None


class RecordPageOut(BaseModel):
    items: list[RecordOut]
    page: int
    limit: int


# ----------------------------------------
# Activity log
# ----------------------------------------
class ActivityLogOut(BaseModel):
    id: UUID
    tenant_id: UUID
    user_id: UUID
    action: str
    details: Optional[dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True
