"""
services/grade_service.py

성적 테이블 조회/저장 (라우터 ↔ DB 사이)
- 조회 결과는 GradeRecord 스키마로 바꿔서 집계 함수에 넘긴다.
- 제출/재제출/상태 변경 시 입력 검증과 충돌 검사를 담당.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from models.grades import Grade as GradeModel
from schemas.grades import (
    GRADE_STATUSES, MAX_GRADE, MIN_GRADE, GradeEntry, GradeRecord,
)
from services.grade_reports import current_academic_year, make_submission_id

logger = logging.getLogger(__name__)


class GradeWriteError(Exception):
    """제출/수정 거절 (HTTP 상태 코드 포함)"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


# ==========================================================
# [입력 검증]
# ==========================================================
def validate_grade_entries(entries: Sequence[GradeEntry]) -> Tuple[bool, Optional[str]]:
    """학생ID/이름/기간 필수, 0이 아닌 점수는 60~100 사이 숫자 (0은 미입력과 같이 통과)"""
    for entry in entries:
        grade = entry.grade
        bad_grade = bool(grade) and not (MIN_GRADE <= grade <= MAX_GRADE)
        if not entry.student_id or not entry.name or not entry.period or bad_grade:
            return False, f"Invalid grade entry for {entry.name or 'a student'}."
    return True, None


# ==========================================================
# [조회]
# ==========================================================
def to_records(rows: Sequence[GradeModel]) -> List[GradeRecord]:
    return [GradeRecord.model_validate(row) for row in rows]


def find_grades(db: Session, academic_year: str, class_id: Optional[str] = None,
                teacher_id: Optional[str] = None) -> List[GradeRecord]:
    query = db.query(GradeModel).filter(GradeModel.academic_year == academic_year)
    if class_id:
        query = query.filter(GradeModel.class_id == class_id)
    if teacher_id:
        query = query.filter(GradeModel.teacher_id == teacher_id)
    return to_records(query.order_by(GradeModel.id).all())


def find_class_of_student(db: Session, student_id: str, academic_year: str) -> Optional[str]:
    row = (
        db.query(GradeModel)
        .filter(GradeModel.student_id == student_id, GradeModel.academic_year == academic_year)
        .first()
    )
    return row.class_id if row else None


# ==========================================================
# [저장]
# ==========================================================
def submit_grades(db: Session, class_id: str, subject: str, teacher_id: str,
                  entries: Sequence[GradeEntry]) -> List[GradeModel]:
    """신규 제출. 같은 학생/기간/과목/학년도 성적이 이미 있으면 409"""
    is_valid, message = validate_grade_entries(entries)
    if not is_valid:
        raise GradeWriteError(400, message)

    academic_year = current_academic_year()
    pairs = [and_(GradeModel.student_id == e.student_id, GradeModel.period == e.period) for e in entries]
    existing = []
    if pairs:
        existing = (
            db.query(GradeModel)
            .filter(GradeModel.subject == subject, GradeModel.academic_year == academic_year)
            .filter(or_(*pairs))
            .all()
        )
    if existing:
        conflicts = ", ".join(f"{g.student_name} ({g.period}) - {g.status}" for g in existing)
        logger.warning("grade submission conflict: class=%s subject=%s count=%d", class_id, subject, len(existing))
        raise GradeWriteError(
            409,
            "Cannot submit grades. The following students already have grades "
            f"for their respective periods and subject: {conflicts}",
        )

    last_updated = datetime.now()
    rows = [
        GradeModel(
            submission_id=make_submission_id(class_id, e.period, subject, academic_year),
            academic_year=academic_year,
            period=e.period,
            class_id=class_id,
            subject=subject,
            teacher_id=teacher_id,
            student_id=e.student_id,
            student_name=e.name,
            grade=e.grade,
            status="Pending",
            last_updated=last_updated,
        )
        for e in entries
    ]
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    logger.info("grades submitted: class=%s subject=%s teacher=%s count=%d", class_id, subject, teacher_id, len(rows))
    return rows


def resubmit_grades(db: Session, submission_id: str, teacher_id: str,
                    entries: Sequence[GradeEntry]) -> List[GradeModel]:
    """승인 전 제출 묶음을 통째로 교체 (상태는 다시 Pending)"""
    is_valid, message = validate_grade_entries(entries)
    if not is_valid:
        raise GradeWriteError(400, message)

    existing = db.query(GradeModel).filter(GradeModel.submission_id == submission_id).first()
    if existing is None or existing.teacher_id != teacher_id:
        raise GradeWriteError(404, "Submission not found or unauthorized")
    if existing.status == "Approved":
        logger.warning("resubmit rejected, submission already approved: %s", submission_id)
        raise GradeWriteError(403, "Cannot update an approved submission. Please request a grade change.")

    template = {
        "submission_id": existing.submission_id,
        "academic_year": existing.academic_year,
        "class_id": existing.class_id,
        "subject": existing.subject,
        "teacher_id": existing.teacher_id,
    }
    db.query(GradeModel).filter(GradeModel.submission_id == submission_id).delete()
    rows = [
        GradeModel(
            **template,
            period=e.period,
            student_id=e.student_id,
            student_name=e.name,
            grade=e.grade,
            status="Pending",
            last_updated=datetime.now(),
        )
        for e in entries
    ]
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    logger.info("grades resubmitted: submission=%s count=%d", submission_id, len(rows))
    return rows


def update_grade_status(db: Session, submission_id: str, student_id: str, status: str) -> GradeModel:
    if status not in GRADE_STATUSES:
        raise GradeWriteError(400, "Invalid status. Must be Approved, Rejected, or Pending.")

    row = (
        db.query(GradeModel)
        .filter(GradeModel.submission_id == submission_id, GradeModel.student_id == student_id)
        .first()
    )
    if row is None:
        raise GradeWriteError(404, "Grade record not found")

    row.status = status
    row.last_updated = datetime.now()
    db.commit()
    db.refresh(row)
    logger.info("grade status updated: submission=%s student=%s status=%s", submission_id, student_id, status)
    return row
