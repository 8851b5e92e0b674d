"""
Bulk leave import.

Rows are independent leave requests: each is parsed, resolved to (student, semester) and
passed through the same create path as a single request. A failing row is reported and
skipped; rows already created stay committed.
"""

import io
import logging
import re
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from openpyxl import Workbook, load_workbook
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.api.v1.system_config.service import ConfigProvider
from leavedesk.core.exceptions import DateOverlap, ServiceError
from leavedesk.core.models.leave_record import REASON_MAX_LENGTH

from .resolver import resolve_student
from .rules import ranges_overlap
from .schemas import BatchResult, BatchRowError, LeaveCreate, LeaveImportRow
from .service import build_leave, create_leave


logger = logging.getLogger(__name__)

EXCEL_MAX_ROWS = 1000

IMPORT_HEADERS = (
    "student_no",
    "student_name",
    "semester_name",
    "grade_name",
    "class_name",
    "start_date",
    "end_date",
    "leave_days",
    "reason",
)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}([ T]00:00(:00(\.0+)?)?)?$")
_DAYS_RE = re.compile(r"^-?\d+(\.0+)?$")


class RowError(ValueError):
    """A row that cannot be turned into a leave request."""


def _field(row: LeaveImportRow, name: str) -> str:
    value = getattr(row, name)
    if value is None or not str(value).strip():
        raise RowError(f"{name} is required")
    return str(value).strip()


def _parse_date(value: str, name: str) -> date:
    # Text cells may carry a midnight time part ("2025-03-03 00:00:00")
    if not _DATE_RE.match(value):
        raise RowError(f"{name} must be a date in YYYY-MM-DD format, got '{value}'")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise RowError(f"{name} must be a date in YYYY-MM-DD format, got '{value}'")


def _parse_days(value: str) -> int:
    # Numeric cells may come through as "5.0"
    if not _DAYS_RE.match(value):
        raise RowError(f"leave_days must be a whole number, got '{value}'")
    days = int(value.split(".")[0])
    if days <= 0:
        raise RowError("leave_days must be greater than 0")
    return days


def _check_reason(value: str) -> str:
    if len(value) > REASON_MAX_LENGTH:
        raise RowError(f"reason must be at most {REASON_MAX_LENGTH} characters")
    return value


async def _row_to_input(db: AsyncSession, row: LeaveImportRow) -> LeaveCreate:
    values = {name: _field(row, name) for name in IMPORT_HEADERS}
    start = _parse_date(values["start_date"], "start_date")
    end = _parse_date(values["end_date"], "end_date")
    leave_days = _parse_days(values["leave_days"])
    reason = _check_reason(values["reason"])
    student_id, semester_id = await resolve_student(
        db,
        values["student_no"],
        values["student_name"],
        values["semester_name"],
        values["grade_name"],
        values["class_name"],
    )
    try:
        return LeaveCreate(
            student_id=student_id,
            semester_id=semester_id,
            start_date=start,
            end_date=end,
            leave_days=leave_days,
            reason=reason,
        )
    except ValidationError as e:
        messages = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise RowError("; ".join(messages))


async def import_leaves(
    db: AsyncSession,
    config: ConfigProvider,
    rows: Sequence[LeaveImportRow],
    applicant_id: int,
    validate_only: bool = False,
    today: Optional[date] = None,
) -> BatchResult:
    """
    Create one leave record per row, collecting per-row errors (1-indexed) without stopping.

    With validate_only nothing is persisted; rows in the same batch are additionally checked
    against each other so a preview reports the overlaps a real import would hit.
    """
    result = BatchResult(validate_only=validate_only)
    # (student_id, semester_id) -> ranges accepted earlier in this preview
    previewed: Dict[Tuple[int, int], List[Tuple[date, date]]] = {}

    for row_num, row in enumerate(rows, start=1):
        try:
            payload = await _row_to_input(db, row)
            if validate_only:
                await build_leave(db, config, payload, applicant_id, today=today)
                key = (payload.student_id, payload.semester_id)
                for start, end in previewed.get(key, []):
                    if ranges_overlap(start, end, payload.start_date, payload.end_date):
                        raise DateOverlap(f"{start} to {end} (earlier row in this import)")
                previewed.setdefault(key, []).append((payload.start_date, payload.end_date))
            else:
                await create_leave(db, config, payload, applicant_id, today=today)
        except (RowError, ServiceError) as e:
            message = e.message if isinstance(e, ServiceError) else str(e)
            result.failed += 1
            result.errors.append(BatchRowError(row=row_num, message=message))
            logger.warning("Leave import row %d rejected: %s", row_num, message)
            continue
        result.created += 1

    logger.info(
        "Leave import by %s finished: %d ok, %d failed%s",
        applicant_id, result.created, result.failed, " (validate only)" if validate_only else "",
    )
    return result


def _cell_str(row: tuple, col: int) -> Optional[str]:
    if col >= len(row):
        return None
    v = row[col]
    if v is None:
        return None
    if isinstance(v, date):
        return v.isoformat()[:10]
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v).strip()


def parse_leave_workbook(content: bytes) -> List[LeaveImportRow]:
    """Parse an uploaded .xlsx into import rows. First row = headers. Raises ValueError on invalid format."""
    if not content:
        raise ValueError("File is empty")
    try:
        wb = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ValueError(f"Invalid Excel file: {e}") from e

    try:
        ws = wb.active
        if ws is None:
            raise ValueError("Excel file has no active sheet")
        rows_iter = ws.iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if not header_row:
            raise ValueError("Excel file has no header row")

        def _norm(s) -> str:
            return (str(s).strip().lower() if s is not None else "").replace(" ", "_")

        header_row = [_norm(c) for c in header_row]
        col_idx = {}
        for h in IMPORT_HEADERS:
            try:
                col_idx[h] = header_row.index(h)
            except ValueError:
                raise ValueError(f"Missing required column: {h}. Found: {header_row}")

        items: List[LeaveImportRow] = []
        for row in rows_iter:
            if not row or all(c is None or (isinstance(c, str) and not c.strip()) for c in row):
                continue
            if len(items) >= EXCEL_MAX_ROWS:
                raise ValueError(f"Maximum {EXCEL_MAX_ROWS} data rows allowed")
            items.append(LeaveImportRow(**{h: _cell_str(row, col_idx[h]) for h in IMPORT_HEADERS}))
        return items
    finally:
        wb.close()


def build_import_error_workbook(rows: Sequence[LeaveImportRow], result: BatchResult) -> bytes:
    """Excel file listing each failed row with its original values and the reason."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Import errors"
    if not result.errors:
        ws.append(["No failed rows"])
    else:
        ws.append(["row"] + list(IMPORT_HEADERS) + ["reason"])
        for err in result.errors:
            row = rows[err.row - 1]
            ws.append([err.row] + [getattr(row, h) or "" for h in IMPORT_HEADERS] + [err.message])
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
