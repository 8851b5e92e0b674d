import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import leavedesk.core.models  # noqa: F401  register tables on Base.metadata
from leavedesk.api.v1.system_config.service import ConfigProvider, clear_cache
from leavedesk.auth.dependencies import get_current_user
from leavedesk.auth.schemas import CurrentUser
from leavedesk.core.enums import UserRole
from leavedesk.core.models import FeeConfig, Grade, SchoolClass, Semester, Student
from leavedesk.db.session import Base, get_db
from leavedesk.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(autouse=True)
def reset_config_cache():
    clear_cache()
    yield
    clear_cache()


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session

    await engine.dispose()


@pytest.fixture()
def config(db_session: AsyncSession) -> ConfigProvider:
    return ConfigProvider(db_session)


@pytest.fixture()
async def school(db_session: AsyncSession) -> dict:
    """One semester with 120 school days, a class with a 15.00 daily meal fee and two students."""
    semester = Semester(
        name="2024-2025 Spring",
        start_date=date(2025, 2, 17),
        end_date=date(2025, 7, 4),
        school_days=120,
        is_current=True,
    )
    grade = Grade(name="Grade 3", sort_order=3)
    db_session.add_all([semester, grade])
    await db_session.flush()

    school_class = SchoolClass(name="Class 1", grade_id=grade.id, semester_id=semester.id)
    db_session.add(school_class)
    await db_session.flush()

    student = Student(student_no="S001", name="Alice", class_id=school_class.id)
    nutrition_student = Student(student_no="S002", name="Bob", class_id=school_class.id, is_nutrition_meal=True)
    fee = FeeConfig(class_id=school_class.id, semester_id=semester.id, meal_fee_standard=Decimal("15.00"))
    db_session.add_all([student, nutrition_student, fee])
    await db_session.commit()

    return {
        "semester": semester,
        "grade": grade,
        "school_class": school_class,
        "student": student,
        "nutrition_student": nutrition_student,
        "fee": fee,
    }


@pytest.fixture()
def current_user() -> CurrentUser:
    """User the HTTP client acts as; tests may change its role."""
    return CurrentUser(id=1, role=UserRole.ADMIN)


@pytest.fixture()
async def client(db_session: AsyncSession, current_user: CurrentUser) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, sharing the test session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_get_current_user() -> CurrentUser:
        return current_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
