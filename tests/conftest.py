import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import Base, get_db
from main import app
from schemas.grades import GradeRecord


@pytest.fixture
def make_grade():
    """GradeRecord 팩토리: make_grade("s1", "Math", "firstPeriod", 90)"""
    def _make(student_id, subject, period, grade, class_id="c1", teacher_id="t1", **extra):
        return GradeRecord(
            student_id=student_id,
            student_name=extra.pop("student_name", f"Student {student_id}"),
            subject=subject,
            period=period,
            grade=grade,
            class_id=class_id,
            teacher_id=teacher_id,
            academic_year=extra.pop("academic_year", "2025/2026"),
            **extra,
        )
    return _make


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
