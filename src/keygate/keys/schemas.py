"""Pydantic schemas for key endpoints."""

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, StrictStr

from keygate.common.schemas import CamelModel


# ── Requests ──

class VerifyRequest(BaseModel):
    key: StrictStr = Field(..., min_length=1)


class DeleteKeyRequest(BaseModel):
    key: StrictStr = Field(..., min_length=1)


class GenerateKeyRequest(BaseModel):
    owner: StrictStr = Field(
        ..., min_length=1,
        validation_alias=AliasChoices("owner", "userId", "username"),
    )
    # Raw value; classified by keygate.keys.expiry.parse_expires_in
    expires_in: Any = Field(
        default=None, validation_alias=AliasChoices("expiresIn", "expires_in"),
    )


class AddKeyRequest(GenerateKeyRequest):
    key: StrictStr = Field(..., min_length=1)


# ── Responses ──

class VerifyResponse(CamelModel):
    is_valid: bool
    message: str
    owner: Optional[str] = None


class KeyIssuedResponse(CamelModel):
    message: str
    key: str
    expires_at: Optional[datetime] = None


class DeleteKeyResponse(CamelModel):
    message: str
    success: bool


class KeyItem(CamelModel):
    key: str
    owner: str
    created_at: datetime
    expires_at: Optional[datetime] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit)
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class KeyListResponse(CamelModel):
    keys: list[KeyItem]
    pagination: Pagination
