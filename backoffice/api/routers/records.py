"""Approvable record API endpoints.

Every entity kind gets the same set of endpoints, mounted under its own
resource path:

    POST   /<resource>                 create
    GET    /<resource>                 list (status filter, pagination)
    GET    /<resource>/by-name/{name}  lookup by unique name
    GET    /<resource>/{id}            lookup by id
    PUT    /<resource>/{id}            update
    DELETE /<resource>/{id}            delete
    POST   /<resource>/{id}/approve    approve staged state
    POST   /<resource>/{id}/deny       deny staged state
"""

import logging
from typing import Any, Dict, List, Optional
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backoffice.api.deps import get_db, get_current_actor
from backoffice.api.schemas.common import PaginatedResponse
from backoffice.core.approval.errors import (
    ForbiddenError,
    InvalidTransitionError,
    RecordConflictError,
    RecordNotFoundError,
    RecordValidationError,
    WorkflowError,
)
from backoffice.core.approval.kinds import EntityKind
from backoffice.core.approval.machine import ApprovalWorkflow
from backoffice.core.approval.service import RecordService
from backoffice.core.approval.states import RecordStatus
from backoffice.core.config import Settings, get_settings
from backoffice.core.rbac.checker import Actor, ApprovalAuthority


logger = logging.getLogger(__name__)


# Schemas
class ActivityEntryResponse(BaseModel):
    actor: Optional[str]
    action: str
    status: Optional[str]
    timestamp: datetime
    message: str
    text: str


class RecordResponse(BaseModel):
    id: str
    kind: str
    name: Optional[str]
    status: RecordStatus
    fields: Dict[str, Any]
    pending_change: Dict[str, Any]
    activity_log: List[ActivityEntryResponse]
    version: Optional[int]
    created_by: Optional[str]
    updated_by: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    deleted: bool = False


class RecordWrite(BaseModel):
    fields: Dict[str, Any]
    version: Optional[int] = None


class ReviewAction(BaseModel):
    version: Optional[int] = None


def to_http_exception(error: Exception) -> HTTPException:
    """Translate a service error into an HTTP error."""
    if isinstance(error, RecordNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, RecordConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, RecordValidationError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, InvalidTransitionError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error) or "An unexpected error occurred")


def build_router(kind: EntityKind) -> APIRouter:
    """Build the router serving one entity kind."""
    router = APIRouter(prefix=f"/{kind.resource}", tags=[kind.resource])

    def get_service(
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings),
    ) -> RecordService:
        workflow = ApprovalWorkflow(
            kind,
            authority=ApprovalAuthority(settings.approval_roles_set),
            activity_limit=settings.activity_log_limit,
        )
        return RecordService(db, kind, workflow=workflow, timezone=settings.activity_timezone)

    def run_command(db: Session, command) -> RecordResponse:
        try:
            result = command()
            response = RecordResponse.model_validate(result)
            db.commit()
            return response
        except WorkflowError as e:
            db.rollback()
            raise to_http_exception(e)
        except Exception as e:
            db.rollback()
            logger.exception(f"Unexpected error on {kind.resource}")
            raise to_http_exception(e)

    @router.get("", response_model=PaginatedResponse[RecordResponse])
    async def list_records(
        page: int = Query(1, ge=1),
        per_page: int = Query(20, ge=1, le=100),
        direction: str = Query("desc", pattern="^(asc|desc)$"),
        record_status: Optional[RecordStatus] = Query(None, alias="status"),
        service: RecordService = Depends(get_service),
        actor: Actor = Depends(get_current_actor),
    ):
        """List records, optionally filtered by status."""
        result = service.list(
            status=record_status,
            page=page,
            per_page=per_page,
            direction=direction,
        )
        return PaginatedResponse[RecordResponse].create(
            items=[RecordResponse.model_validate(r) for r in result["items"]],
            total=result["total"],
            page=result["page"],
            per_page=result["per_page"],
        )

    @router.get("/by-name/{name}", response_model=RecordResponse)
    async def get_record_by_name(
        name: str,
        service: RecordService = Depends(get_service),
        actor: Actor = Depends(get_current_actor),
    ):
        """Get a record by its unique name."""
        if not kind.name_field:
            raise HTTPException(status_code=404, detail=f"{kind.label} records have no unique name")
        try:
            return RecordResponse.model_validate(service.get_by_name(name))
        except RecordNotFoundError as e:
            raise to_http_exception(e)

    @router.get("/{record_id}", response_model=RecordResponse)
    async def get_record(
        record_id: str,
        service: RecordService = Depends(get_service),
        actor: Actor = Depends(get_current_actor),
    ):
        """Get a specific record."""
        try:
            return RecordResponse.model_validate(service.get(record_id))
        except RecordNotFoundError as e:
            raise to_http_exception(e)

    @router.post("", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
    async def create_record(
        body: RecordWrite,
        db: Session = Depends(get_db),
        service: RecordService = Depends(get_service),
        actor: Actor = Depends(get_current_actor),
    ):
        """Create a record; it is active immediately only for approvers."""
        return run_command(db, lambda: service.create(body.fields, actor))

    @router.put("/{record_id}", response_model=RecordResponse)
    async def update_record(
        record_id: str,
        body: RecordWrite,
        db: Session = Depends(get_db),
        service: RecordService = Depends(get_service),
        actor: Actor = Depends(get_current_actor),
    ):
        """Update a record or stage the change for approval."""
        return run_command(
            db,
            lambda: service.update(record_id, body.fields, actor, expected_version=body.version),
        )

    @router.delete("/{record_id}", response_model=RecordResponse)
    async def delete_record(
        record_id: str,
        version: Optional[int] = None,
        db: Session = Depends(get_db),
        service: RecordService = Depends(get_service),
        actor: Actor = Depends(get_current_actor),
    ):
        """Delete a record or mark it for deletion."""
        return run_command(db, lambda: service.delete(record_id, actor, expected_version=version))

    @router.post("/{record_id}/approve", response_model=RecordResponse)
    async def approve_record(
        record_id: str,
        action: Optional[ReviewAction] = None,
        db: Session = Depends(get_db),
        service: RecordService = Depends(get_service),
        actor: Actor = Depends(get_current_actor),
    ):
        """Approve a staged record."""
        version = action.version if action else None
        return run_command(db, lambda: service.approve(record_id, actor, expected_version=version))

    @router.post("/{record_id}/deny", response_model=RecordResponse)
    async def deny_record(
        record_id: str,
        action: Optional[ReviewAction] = None,
        db: Session = Depends(get_db),
        service: RecordService = Depends(get_service),
        actor: Actor = Depends(get_current_actor),
    ):
        """Deny a staged record."""
        version = action.version if action else None
        return run_command(db, lambda: service.deny(record_id, actor, expected_version=version))

    return router
