import csv
import logging
from datetime import datetime

from sqlalchemy.orm import Session
from database.db import Base, SessionLocal, engine
from models.grades import Grade as GradeModel  # ✅ 모델 import
from services.grade_reports import make_submission_id

CSV_PATH = "data/grades.csv"  # ✅ 파일 경로

logger = logging.getLogger(__name__)


def _grade_or_none(raw: str):
    # 빈 칸은 미입력(미완료)으로 저장
    raw = (raw or "").strip()
    return float(raw) if raw else None


def load_grades(db: Session, csv_path: str = CSV_PATH) -> int:
    """
    CSV 컬럼: academic_year, class_id, subject, period, teacher_id,
             student_id, student_name, grade, status(선택), submission_id(선택)
    """
    count = 0
    with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for row in reader:
            grade = GradeModel(
                submission_id=row.get("submission_id") or make_submission_id(
                    row["class_id"], row["period"], row["subject"], row["academic_year"]
                ),
                academic_year=row["academic_year"],         # 학년도
                period=row["period"],                       # 평가 기간
                class_id=row["class_id"],                   # 반 ID
                subject=row["subject"],                     # 과목명
                teacher_id=row["teacher_id"],               # 교사 ID
                student_id=row["student_id"],               # 학생 ID
                student_name=row["student_name"],           # 학생 이름
                grade=_grade_or_none(row.get("grade")),     # 점수
                status=row.get("status") or "Pending",      # 상태
                last_updated=datetime.now(),
            )
            db.add(grade)
            count += 1

    db.commit()
    logger.info("grades imported from %s: %d rows", csv_path, count)
    return count


def migrate_grades():
    Base.metadata.create_all(bind=engine)
    db: Session = SessionLocal()
    try:
        count = load_grades(db)
    finally:
        db.close()
    print(f"✅ 성적 CSV → DB 마이그레이션 완료 ({count}건)")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    migrate_grades()
