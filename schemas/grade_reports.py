"""
schemas/grade_reports.py

- 성적 집계 결과(정기/연간/마스터 성적표)의 응답 스키마
- 모든 객체는 호출 1회마다 새로 만들어지는 값 객체 (공유 상태 없음)
- JSON 필드명은 camelCase, dict 키(기간 이름, 'yearly' 등)는 그대로 출력
"""

from datetime import datetime
from typing import Dict, List, Optional, Union

from schemas.grades import CamelModel, GradeRecord


class Stats(CamelModel):
    incompletes: int = 0        # 점수가 유효하지 않은 항목 수
    passes: int = 0             # 70점 이상
    fails: int = 0              # 유효 점수 중 70점 미만
    average: float = 0          # 유효 점수 평균 (소수 첫째 자리)
    total_students: int = 0     # 입력 항목 전체 수


class RankedEntity(CamelModel):
    id: str
    average: float
    rounded_average: float
    rank: int


class SubjectGrade(CamelModel):
    subject: str
    grade: Optional[float] = None


# ==========================================================
# [정기 성적표] 한 기간, 전 과목
# ==========================================================
class StudentPeriodicReport(CamelModel):
    student_id: str
    student_name: str
    subjects: List[SubjectGrade] = []
    periodic_average: float = 0
    rank: int = 0
    incompletes: int = 0
    passes: int = 0
    fails: int = 0


# ==========================================================
# [마스터 성적표] 한 과목(또는 전 과목), 전 기간
# ==========================================================
class MastersStudent(CamelModel):
    student_id: str
    student_name: str
    periods: Dict[str, Optional[float]] = {}   # 기간 → 점수
    overall_average: float = 0


class MastersReport(CamelModel):
    subject: str
    teacher_id: str
    class_id: str
    students: List[MastersStudent] = []
    period_stats: Dict[str, Stats] = {}


# ==========================================================
# [연간 성적표]
# ==========================================================
class StudentYearlyReport(CamelModel):
    student_id: str
    student_name: str
    periods: Dict[str, List[SubjectGrade]] = {}
    first_semester_average: Dict[str, Union[int, float]] = {}   # 과목 → 1학기 평균 (정수, 무한대 점수는 inf)
    second_semester_average: Dict[str, Union[int, float]] = {}  # 과목 → 2학기 평균
    yearly_subject_averages: Dict[str, float] = {}  # 과목 → 연간 평균
    period_averages: Dict[str, float] = {}          # 기간/학기/연간 키 → 전 과목 평균
    yearly_average: float = 0
    ranks: Dict[str, int] = {}                      # 기간/학기 키, 'yearly' → 석차


# ==========================================================
# [제출 현황] 교사별 제출 묶음
# ==========================================================
class SubmissionStudent(CamelModel):
    student_id: str
    student_name: str
    grade: Optional[float] = None
    status: str


class Submission(CamelModel):
    submission_id: str
    class_id: str
    subject: str
    period: str
    last_updated: Optional[datetime] = None
    students: List[SubmissionStudent] = []
    total_students: int = 0
    pending_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0


class GradeSubmissionReport(CamelModel):
    teacher_id: str
    academic_year: str
    submissions: List[Submission] = []


class AllGradesReport(CamelModel):
    academic_year: str
    total_records: int = 0
    grades: List[GradeRecord] = []
