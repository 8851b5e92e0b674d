from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.api.v1.system_config.service import ConfigProvider
from leavedesk.auth.dependencies import get_current_user
from leavedesk.auth.rbac import check_permission
from leavedesk.auth.schemas import CurrentUser
from leavedesk.core.enums import ReviewDecision, UserRole
from leavedesk.core.exceptions import ServiceError
from leavedesk.db.session import get_db

from . import service
from .importer import build_import_error_workbook, import_leaves, parse_leave_workbook
from .recalculate import recalculate_refunds
from .schemas import (
    BatchResult,
    LeaveCreate,
    LeaveImportRequest,
    LeaveRecordResponse,
    LeaveReviewRequest,
    LeaveStatsResponse,
    LeaveUpdate,
    RecalculationResult,
)

router = APIRouter(prefix="/api/v1/leaves", tags=["leaves"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def get_config_provider(db: AsyncSession = Depends(get_db)) -> ConfigProvider:
    return ConfigProvider(db)


@router.post(
    "",
    response_model=LeaveRecordResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("leave", "create"))],
)
async def create_leave(
    payload: LeaveCreate,
    db: AsyncSession = Depends(get_db),
    config: ConfigProvider = Depends(get_config_provider),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveRecordResponse:
    """File a leave request for a student. Pending unless approval is switched off in system config."""
    try:
        return await service.create_leave(db, config, payload, current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/stats",
    response_model=LeaveStatsResponse,
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def leave_stats(
    semester_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
) -> LeaveStatsResponse:
    return await service.leave_stats(db, semester_id)


@router.post(
    "/import",
    response_model=BatchResult,
    dependencies=[Depends(check_permission("leave", "import"))],
)
async def import_leave_rows(
    payload: LeaveImportRequest,
    validate_only: bool = Query(False, description="Check rows without saving anything"),
    db: AsyncSession = Depends(get_db),
    config: ConfigProvider = Depends(get_config_provider),
    current_user: CurrentUser = Depends(get_current_user),
) -> BatchResult:
    """Import leave rows. Each row succeeds or fails on its own; errors carry the 1-based row number."""
    return await import_leaves(db, config, payload.leaves, current_user.id, validate_only=validate_only)


@router.post(
    "/import/excel",
    dependencies=[Depends(check_permission("leave", "import"))],
)
async def import_leave_workbook(
    file: UploadFile = File(...),
    validate_only: bool = Query(False),
    error_report: bool = Query(False, description="Return failed rows as an .xlsx instead of JSON"),
    db: AsyncSession = Depends(get_db),
    config: ConfigProvider = Depends(get_config_provider),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Import leave rows from an .xlsx upload (same columns as the JSON import)."""
    if not file.filename or not file.filename.lower().endswith(".xlsx"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File must be an Excel file (.xlsx)")
    try:
        rows = parse_leave_workbook(await file.read())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not rows:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No data rows found")
    result = await import_leaves(db, config, rows, current_user.id, validate_only=validate_only)
    if error_report:
        return Response(
            content=build_import_error_workbook(rows, result),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": 'attachment; filename="leave_import_errors.xlsx"'},
        )
    return result


@router.post(
    "/recalculate-refunds",
    response_model=RecalculationResult,
    dependencies=[Depends(check_permission("fee", "update"))],
)
async def recalculate_leave_refunds(db: AsyncSession = Depends(get_db)) -> RecalculationResult:
    """Re-derive refund amounts of all refundable leave records from current fee configuration."""
    return await recalculate_refunds(db)


@router.get(
    "/{leave_id}",
    response_model=LeaveRecordResponse,
    dependencies=[Depends(check_permission("leave", "read"))],
)
async def get_leave(
    leave_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveRecordResponse:
    try:
        leave = await service.get_leave(db, leave_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    # Teachers only see what they filed
    if current_user.role == UserRole.TEACHER and leave.applicant_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to view this leave record")
    return leave


@router.put(
    "/{leave_id}",
    response_model=LeaveRecordResponse,
    dependencies=[Depends(check_permission("leave", "update"))],
)
async def update_leave(
    leave_id: int,
    payload: LeaveUpdate,
    db: AsyncSession = Depends(get_db),
    config: ConfigProvider = Depends(get_config_provider),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveRecordResponse:
    """Edit a leave record. Use kind="restatus" with a status to edit an approved record and send it back for review."""
    try:
        return await service.update_leave(db, config, leave_id, payload, actor_id=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.delete(
    "/{leave_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(check_permission("leave", "delete"))],
)
async def delete_leave(
    leave_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    """Delete a pending or rejected leave record. Approved records are protected."""
    try:
        await service.delete_leave(db, leave_id, actor_id=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{leave_id}/approve",
    response_model=LeaveRecordResponse,
    dependencies=[Depends(check_permission("leave", "approve"))],
)
async def approve_leave(
    leave_id: int,
    payload: LeaveReviewRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveRecordResponse:
    try:
        return await service.review_leave(
            db, leave_id, ReviewDecision.approved, current_user.id, remark=payload.review_remark
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{leave_id}/reject",
    response_model=LeaveRecordResponse,
    dependencies=[Depends(check_permission("leave", "approve"))],
)
async def reject_leave(
    leave_id: int,
    payload: LeaveReviewRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveRecordResponse:
    try:
        return await service.review_leave(
            db, leave_id, ReviewDecision.rejected, current_user.id, remark=payload.review_remark
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{leave_id}/revoke",
    response_model=LeaveRecordResponse,
    dependencies=[Depends(check_permission("leave", "approve"))],
)
async def revoke_leave(
    leave_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> LeaveRecordResponse:
    """Send an approved or rejected leave back to pending; the previous review is discarded."""
    try:
        return await service.revoke_leave(db, leave_id, current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
