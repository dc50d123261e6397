"""Key API router.

Each handler validates its input first, then checks the admin credential
where required, then calls the service. KeygateError subclasses raised here
are turned into JSON ``{"message": ...}`` bodies by the app's exception
handlers; ``/verify`` answers its own errors so they carry ``isValid``.
"""

from typing import Any, Optional, TypeVar

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from keygate.common.config import KeygateSettings
from keygate.common.exceptions import KeygateError, ValidationError
from keygate.common.security import API_KEY_HEADER, require_admin_key
from keygate.deps import get_app_settings, get_key_service
from keygate.keys.expiry import parse_expires_in
from keygate.keys.repository import KeyRecord
from keygate.keys.schemas import (
    AddKeyRequest,
    DeleteKeyRequest,
    DeleteKeyResponse,
    GenerateKeyRequest,
    KeyIssuedResponse,
    KeyItem,
    KeyListResponse,
    Pagination,
    VerifyRequest,
    VerifyResponse,
)
from keygate.keys.service import KeyService

router = APIRouter()

# Keeps (page - 1) * limit inside a signed 64-bit SQL integer
MAX_OFFSET = 2 ** 62

RequestT = TypeVar("RequestT", bound=BaseModel)


async def read_json_body(request: Request) -> dict[str, Any]:
    """Return the JSON object body, or {} when absent or not an object."""
    try:
        data = await request.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def parse_request(model: type[RequestT], data: dict[str, Any], message: str) -> RequestT:
    try:
        return model.model_validate(data)
    except PydanticValidationError:
        raise ValidationError(message) from None


def _positive_int(value: Optional[str], default: int) -> int:
    try:
        number = int(value) if value is not None else default
    except ValueError:
        return default
    return number if number > 0 else default


def _item(record: KeyRecord) -> KeyItem:
    return KeyItem(
        key=record.key,
        owner=record.owner,
        created_at=record.created_at,
        expires_at=record.expires_at,
    )


@router.get("/ping", response_class=PlainTextResponse)
async def ping():
    return "pong"


@router.post("/verify", response_model=VerifyResponse, response_model_exclude_none=True)
async def verify(request: Request, svc: KeyService = Depends(get_key_service)):
    data = await read_json_body(request)
    try:
        body = parse_request(VerifyRequest, data, "invalid key format")
        result = await svc.verify(body.key)
    except KeygateError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"isValid": False, "message": e.message},
        )
    return VerifyResponse(is_valid=result.valid, message=result.message, owner=result.owner)


@router.post("/add-key", response_model=KeyIssuedResponse)
async def add_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
    settings: KeygateSettings = Depends(get_app_settings),
    svc: KeyService = Depends(get_key_service),
):
    body = parse_request(AddKeyRequest, await read_json_body(request), "invalid data format")
    expiry = parse_expires_in(body.expires_in)
    require_admin_key(x_api_key, settings)

    record = await svc.add_key(body.key, body.owner, expiry)
    return KeyIssuedResponse(message="key added", key=record.key, expires_at=record.expires_at)


@router.post("/delete-key", response_model=DeleteKeyResponse)
async def delete_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
    settings: KeygateSettings = Depends(get_app_settings),
    svc: KeyService = Depends(get_key_service),
):
    body = parse_request(DeleteKeyRequest, await read_json_body(request), "invalid key format")
    require_admin_key(x_api_key, settings)

    deleted = await svc.delete_key(body.key)
    return DeleteKeyResponse(
        message="key deleted" if deleted else "key not found",
        success=deleted,
    )


@router.get("/get-keys", response_model=KeyListResponse)
async def get_keys(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    x_api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
    settings: KeygateSettings = Depends(get_app_settings),
    svc: KeyService = Depends(get_key_service),
):
    require_admin_key(x_api_key, settings)

    page_no = _positive_int(page, 1)
    page_size = min(_positive_int(limit, settings.default_page_size), settings.max_page_size)
    page_no = min(page_no, MAX_OFFSET // page_size)
    records, total = await svc.list_keys(page_no, page_size)
    return KeyListResponse(
        keys=[_item(r) for r in records],
        pagination=Pagination.build(page_no, page_size, total),
    )


@router.post("/generate-key", response_model=KeyIssuedResponse)
async def generate_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
    settings: KeygateSettings = Depends(get_app_settings),
    svc: KeyService = Depends(get_key_service),
):
    body = parse_request(GenerateKeyRequest, await read_json_body(request), "owner is required")
    expiry = parse_expires_in(body.expires_in)
    require_admin_key(x_api_key, settings)

    record = await svc.generate_key(body.owner, expiry)
    return KeyIssuedResponse(
        message="key generated and added", key=record.key, expires_at=record.expires_at,
    )
