"""
schemas/grades.py

- 성적 원본 레코드(GradeRecord)와 제출/수정 요청 스키마
- 집계 로직이 공통으로 쓰는 고정 어휘(기간 이름, 상태 값, 합격 기준) 정의
- 속성은 snake_case, JSON 직렬화는 camelCase (기존 프론트 응답 형식과 동일)
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ==========================================================
# [고정 어휘]
# ==========================================================
FIRST_SEMESTER_PERIODS = ("firstPeriod", "secondPeriod", "thirdPeriod")
FIRST_SEMESTER_EXAM = "thirdPeriodExam"
SECOND_SEMESTER_PERIODS = ("fourthPeriod", "fifthPeriod", "sixthPeriod")
SECOND_SEMESTER_EXAM = "sixthPeriodExam"

PERIODS = (
    *FIRST_SEMESTER_PERIODS, FIRST_SEMESTER_EXAM,
    *SECOND_SEMESTER_PERIODS, SECOND_SEMESTER_EXAM,
)

FIRST_SEMESTER_KEY = "firstSemesterAverage"
SECOND_SEMESTER_KEY = "secondSemesterAverage"
YEARLY_AVERAGE_KEY = "yearlyAverage"
YEARLY_RANK_KEY = "yearly"

GRADE_STATUSES = ("Pending", "Approved", "Rejected")

PASS_MARK = 70      # 합격/불합격 경계 (변경 불가)
MIN_GRADE = 60      # 입력 허용 최저 점수
MAX_GRADE = 100     # 입력 허용 최고 점수


class CamelModel(BaseModel):
    """camelCase 별칭으로 직렬화하는 공용 베이스"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ==========================================================
# [원본 레코드]
# ==========================================================
class GradeRecord(CamelModel):
    submission_id: str = ""                  # 제출 묶음 ID
    academic_year: str = ""                  # 학년도 (예: 2025/2026)
    period: str                              # 평가 기간
    class_id: str                            # 반 ID
    subject: str                             # 과목명
    teacher_id: str = ""                     # 담당 교사 ID
    student_id: str                          # 학생 ID
    student_name: str = ""                   # 학생 이름
    grade: Optional[float] = None            # 점수 (None/NaN → 미완료)
    status: str = "Pending"                  # Pending / Approved / Rejected
    last_updated: Optional[datetime] = None  # 최종 수정 시각


# ==========================================================
# [입력용 스키마]
# ==========================================================
class GradeEntry(CamelModel):
    """교사가 제출하는 학생 1명분 점수. 세부 검증은 services.grade_service.validate_grade_entries"""
    student_id: Optional[str] = None
    name: Optional[str] = None
    period: Optional[str] = None
    grade: Optional[float] = None


class GradeSubmitRequest(CamelModel):
    class_id: str
    subject: str
    teacher_id: str
    grades: List[GradeEntry]


class GradeResubmitRequest(CamelModel):
    submission_id: str
    teacher_id: str
    grades: List[GradeEntry]


class GradeStatusUpdate(CamelModel):
    submission_id: Optional[str] = None
    student_id: Optional[str] = None
    status: Optional[str] = None


GradeStatusUpdateBody = Union[GradeStatusUpdate, List[GradeStatusUpdate]]


# ==========================================================
# [출력용 스키마]
# ==========================================================
class GradeOut(GradeRecord):
    id: int = Field(..., description="성적 고유 ID")
