"""
Lookups against the school hierarchy used by the leave lifecycle.

Import rows identify a student by natural key: student number + name + semester name +
grade name + class name. Each step reports which part failed so the operator can fix
the row.
"""

from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.core.exceptions import SemesterNotFound, StudentNotFound
from leavedesk.core.models import FeeConfig, Grade, SchoolClass, Semester, Student


async def get_student(db: AsyncSession, student_id: int) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise StudentNotFound()
    return student


async def get_semester(db: AsyncSession, semester_id: int) -> Semester:
    semester = await db.get(Semester, semester_id)
    if not semester:
        raise SemesterNotFound()
    return semester


async def get_fee_standard(db: AsyncSession, class_id: int, semester_id: int) -> Optional[Decimal]:
    """Daily meal fee for (class, semester); None when not configured."""
    return (
        await db.execute(
            select(FeeConfig.meal_fee_standard).where(
                FeeConfig.class_id == class_id,
                FeeConfig.semester_id == semester_id,
            )
        )
    ).scalar_one_or_none()


async def resolve_student(
    db: AsyncSession,
    student_no: str,
    student_name: str,
    semester_name: str,
    grade_name: str,
    class_name: str,
) -> Tuple[int, int]:
    """Return (student_id, semester_id) for the natural key, or raise a not-found error naming the missing part."""
    semester_id = (
        await db.execute(select(Semester.id).where(Semester.name == semester_name))
    ).scalar_one_or_none()
    if semester_id is None:
        raise SemesterNotFound(f"Semester '{semester_name}' not found")

    class_id = (
        await db.execute(
            select(SchoolClass.id)
            .join(Grade, SchoolClass.grade_id == Grade.id)
            .where(
                SchoolClass.semester_id == semester_id,
                Grade.name == grade_name,
                SchoolClass.name == class_name,
            )
        )
    ).scalar_one_or_none()
    if class_id is None:
        raise StudentNotFound(f"Class '{grade_name} {class_name}' not found in semester '{semester_name}'")

    student_id = (
        await db.execute(
            select(Student.id).where(
                Student.student_no == student_no,
                Student.name == student_name,
                Student.class_id == class_id,
            )
        )
    ).scalar_one_or_none()
    if student_id is None:
        raise StudentNotFound(
            f"Student '{student_name}' (no. {student_no}) not found in {grade_name} {class_name}"
        )
    return student_id, semester_id
