from sqlalchemy import Column, Integer, Float, String, DateTime, Index
from database.db import Base

class Grade(Base):
    __tablename__ = "grades"  # 제출 단위 성적 원본 테이블 (학생+기간+과목 1건)

    id = Column(Integer, primary_key=True, index=True)          # 성적 고유 ID (Primary Key)
    submission_id = Column(String(200), nullable=False, index=True)  # 제출 묶음 ID (학년도-반-기간-과목)
    academic_year = Column(String(20), nullable=False)          # 학년도 (예: 2025/2026)
    period = Column(String(30), nullable=False)                 # 평가 기간 (firstPeriod ... sixthPeriodExam)
    class_id = Column(String(100), nullable=False)              # 반 ID
    subject = Column(String(100), nullable=False)               # 과목명
    teacher_id = Column(String(100), nullable=False)            # 담당 교사 ID
    student_id = Column(String(100), nullable=False)            # 학생 ID
    student_name = Column(String(200), nullable=False)          # 학생 이름
    grade = Column(Float)                                       # 점수 (미입력 허용 → 집계 시 미완료 처리)
    status = Column(String(20), nullable=False, default="Pending")  # Pending / Approved / Rejected
    last_updated = Column(DateTime, nullable=False)             # 최종 수정 시각

    __table_args__ = (
        Index("ix_grades_year_class", "academic_year", "class_id"),
        Index("ix_grades_year_teacher", "academic_year", "teacher_id"),
    )
