"""Endpoints for reporting git activity and listing active users."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from teamgit.application.use_cases import (
    ActivityStore,
    describe_recency,
    is_user_active,
)
from teamgit.application.use_cases.activity import normalize_tenant
from teamgit.domain.entities import UserRecord
from teamgit.domain.exceptions import (
    ActivityStoreError,
    BackendUnavailable,
    ConfigurationError,
    ValidationError,
)
from teamgit.interfaces.api.dependencies import get_activity_store
from teamgit.interfaces.api.schemas import (
    ActivityEventPayload,
    RecordActivityResponse,
    StorageStatusRead,
    UserActivityRead,
    UsersResponse,
)

router = APIRouter(prefix="/api", tags=["activity"])
logger = logging.getLogger(__name__)

TENANT_REQUIRED = "Tenant parameter is required"


def _to_http_exception(exc: ActivityStoreError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ConfigurationError):
        logger.error("Storage backend is not configured: %s", exc)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        )
    if isinstance(exc, BackendUnavailable):
        logger.warning("Storage backend unavailable: %s", exc, exc_info=exc)
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage backend unavailable",
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _serialize_users(store: ActivityStore, records: list[UserRecord]) -> list[UserActivityRead]:
    now = store.now()
    return [
        UserActivityRead.from_entity(
            record,
            is_active=is_user_active(record, now=now),
            last_seen=describe_recency(record.last_activity, now=now),
        )
        for record in records
    ]


@router.post("/git-activity", response_model=RecordActivityResponse)
def record_git_activity(
    payload: ActivityEventPayload,
    store: ActivityStore = Depends(get_activity_store),
) -> RecordActivityResponse:
    """Store the activity reported by the git wrapper."""

    try:
        store.record_activity(payload.to_entity())
    except ActivityStoreError as exc:
        raise _to_http_exception(exc) from exc
    return RecordActivityResponse(success=True)


@router.get(
    "/users",
    response_model=UsersResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
def list_users(
    tenant: str | None = Query(None, description="Team whose users are listed"),
    active: bool = Query(False, description="Only return users active in the last 30 minutes"),
    store: ActivityStore = Depends(get_activity_store),
):
    """List a tenant's users, most recently active first."""

    # Never fall back to a cross-tenant listing.
    if normalize_tenant(tenant) is None:
        body = UsersResponse(error=TENANT_REQUIRED)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    try:
        records = store.get_active_users(tenant) if active else store.get_all_users(tenant)
    except ActivityStoreError as exc:
        raise _to_http_exception(exc) from exc

    users = _serialize_users(store, records)
    return UsersResponse(
        users=users,
        total_count=len(users),
        active_count=sum(1 for user in users if user.is_active),
    )


@router.get(
    "/users/{email}",
    response_model=UserActivityRead,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
def read_user(
    email: str,
    tenant: str | None = Query(None, description="Team the user belongs to"),
    store: ActivityStore = Depends(get_activity_store),
):
    """Return a single user of ``tenant``."""

    try:
        record = store.get_user(tenant, email)
    except ActivityStoreError as exc:
        raise _to_http_exception(exc) from exc

    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _serialize_users(store, [record])[0]


@router.get("/storage", response_model=StorageStatusRead, response_model_by_alias=True)
def read_storage_status(
    store: ActivityStore = Depends(get_activity_store),
) -> StorageStatusRead:
    """Report which storage backend is in use and whether it is configured."""

    return StorageStatusRead(
        storage_type=store.storage_type,
        configured=store.is_configured(),
    )


__all__ = ["router"]
