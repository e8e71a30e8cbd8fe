"""
services/grade_reports.py

성적 원본 레코드 → 성적표 집계
- build_periodic_report   : 한 기간, 전 과목, 석차 포함
- build_masters_report    : 한 과목(또는 전 과목), 전 기간, 기간별 반 통계
- build_yearly_report     : 학기/연간 평균 + 기간·학기·연간 석차
- build_submission_report : 교사별 제출 묶음 현황
- build_all_grades_report : 학년도 전체 레코드 목록

모든 함수는 입력 목록만 보고 결과를 새로 만드는 순수 함수입니다.
석차는 항상 반 전체를 기준으로 먼저 계산하고, studentIds 필터는 마지막에 적용합니다.
"""

import logging
import re
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Union

from schemas.grade_reports import (
    AllGradesReport, GradeSubmissionReport, MastersReport, MastersStudent,
    StudentPeriodicReport, StudentYearlyReport, Submission, SubmissionStudent,
    SubjectGrade,
)
from schemas.grades import (
    FIRST_SEMESTER_EXAM, FIRST_SEMESTER_KEY, FIRST_SEMESTER_PERIODS,
    SECOND_SEMESTER_EXAM, SECOND_SEMESTER_KEY, SECOND_SEMESTER_PERIODS,
    YEARLY_AVERAGE_KEY, YEARLY_RANK_KEY, GradeRecord,
)
from services.grade_stats import compute_stats, is_valid_grade, rank_lookup, round0, round1

logger = logging.getLogger(__name__)


# ==========================================================
# [공통 헬퍼]
# ==========================================================
def current_academic_year(today: Optional[date] = None) -> str:
    """8월부터 새 학년도 (예: 2025-09 → '2025/2026', 2026-03 → '2025/2026')"""
    today = today or date.today()
    if today.month >= 8:
        return f"{today.year}/{today.year + 1}"
    return f"{today.year - 1}/{today.year}"


def make_submission_id(class_id: str, period: str, subject: str,
                       academic_year: Optional[str] = None) -> str:
    raw = f"{academic_year or current_academic_year()}-{class_id}-{period}-{subject}"
    return re.sub(r"[/\s+]", "", raw).lower()


def parse_student_ids(raw: Optional[str]) -> Optional[List[str]]:
    """'a, b,,c' → ['a', 'b', 'c'] / 빈 값이면 None"""
    if not raw:
        return None
    return [s.strip() for s in raw.split(",") if s.strip()]


def remove_duplicate_subjects(entries: Iterable[SubjectGrade]) -> List[SubjectGrade]:
    """과목별 1건만 유지. 마지막 값이 이기고, 위치는 처음 나온 자리 그대로"""
    by_subject: Dict[str, Optional[float]] = {}
    for entry in entries:
        by_subject[entry.subject] = entry.grade
    return [SubjectGrade(subject=s, grade=g) for s, g in by_subject.items()]


def _only_requested(rows: list, student_ids: Optional[Sequence[str]]) -> list:
    # 석차 계산이 끝난 뒤에만 호출할 것
    if not student_ids:
        return rows
    wanted = set(student_ids)
    return [row for row in rows if row.student_id in wanted]


# ==========================================================
# [정기 성적표]
# ==========================================================
def build_periodic_report(grades: Sequence[GradeRecord], class_id: str, period: str,
                          student_ids: Optional[Sequence[str]] = None) -> List[StudentPeriodicReport]:
    names: Dict[str, str] = {}
    subjects: Dict[str, List[SubjectGrade]] = {}
    for g in grades:
        if g.class_id != class_id or g.period != period:
            continue
        names.setdefault(g.student_id, g.student_name)
        subjects.setdefault(g.student_id, []).append(SubjectGrade(subject=g.subject, grade=g.grade))

    # 학생별 평균/통계 (반 전체)
    cleaned = {sid: remove_duplicate_subjects(entries) for sid, entries in subjects.items()}
    stats = {sid: compute_stats(entries) for sid, entries in cleaned.items()}

    # ✅ 석차는 반 전체 기준
    ranks = rank_lookup((sid, s.average) for sid, s in stats.items())

    reports = [
        StudentPeriodicReport(
            student_id=sid,
            student_name=names[sid],
            # 점수가 없는 과목은 미완료로만 집계하고 목록에는 넣지 않음
            subjects=[e for e in cleaned[sid] if is_valid_grade(e.grade)],
            periodic_average=s.average,
            rank=ranks.get(sid, 0),
            incompletes=s.incompletes,
            passes=s.passes,
            fails=s.fails,
        )
        for sid, s in stats.items()
    ]
    reports.sort(key=lambda r: r.rank)
    logger.debug("periodic report class=%s period=%s students=%d", class_id, period, len(reports))
    return _only_requested(reports, student_ids)


# ==========================================================
# [마스터 성적표]
# ==========================================================
def build_masters_report(grades: Sequence[GradeRecord], class_id: str,
                         subject: Optional[str] = None, teacher_id: Optional[str] = None,
                         student_ids: Optional[Sequence[str]] = None) -> MastersReport:
    # 석차가 없는 성적표이므로 모든 필터를 먼저 적용 (기간별 통계도 필터된 집합 기준)
    filtered = [g for g in grades if g.class_id == class_id]
    if subject:
        filtered = [g for g in filtered if g.subject == subject]
    if teacher_id:
        filtered = [g for g in filtered if g.teacher_id == teacher_id]
    if student_ids:
        wanted = set(student_ids)
        filtered = [g for g in filtered if g.student_id in wanted]

    names: Dict[str, str] = {}
    periods: Dict[str, Dict[str, Optional[float]]] = {}
    student_grades: Dict[str, List[GradeRecord]] = {}
    period_grades: Dict[str, List[GradeRecord]] = {}
    for g in filtered:
        names.setdefault(g.student_id, g.student_name)
        periods.setdefault(g.student_id, {})[g.period] = g.grade
        student_grades.setdefault(g.student_id, []).append(g)
        period_grades.setdefault(g.period, []).append(g)

    students = [
        MastersStudent(
            student_id=sid,
            student_name=names[sid],
            periods=periods[sid],
            overall_average=compute_stats(student_grades[sid]).average,
        )
        for sid in names
    ]
    period_stats = {p: compute_stats(rows) for p, rows in period_grades.items()}

    logger.debug("masters report class=%s subject=%s students=%d", class_id, subject, len(students))
    return MastersReport(
        subject=subject or "All Subjects",
        teacher_id=teacher_id or "All Teachers",
        class_id=class_id,
        students=students,
        period_stats=period_stats,
    )


# ==========================================================
# [연간 성적표]
# ==========================================================
def _grade_in(by_period: Dict[str, List[SubjectGrade]], period: str, subject: str) -> Optional[float]:
    for entry in by_period.get(period, []):
        if entry.subject == subject:
            return entry.grade
    return None


def _semester_average(by_period: Dict[str, List[SubjectGrade]], subject: str,
                      periods: Sequence[str], exam: str) -> Optional[Union[int, float]]:
    """
    학기 평균 = round((구성 기간 평균 + 시험) / 2), 시험이 없으면 round(구성 기간 평균)
    구성 기간 점수가 하나도 없으면 None (해당 과목 키 생략)
    """
    present = [g for g in (_grade_in(by_period, p, subject) for p in periods) if is_valid_grade(g)]
    if not present:
        return None
    periods_average = sum(present) / len(present)
    exam_grade = _grade_in(by_period, exam, subject)
    if is_valid_grade(exam_grade):
        return round0((periods_average + exam_grade) / 2)
    return round0(periods_average)


def _mean1(values: Iterable[float]) -> Optional[float]:
    values = [v for v in values if is_valid_grade(v)]
    if not values:
        return None
    return round1(sum(values) / len(values))


def build_yearly_report(grades: Sequence[GradeRecord], class_id: str,
                        student_ids: Optional[Sequence[str]] = None) -> List[StudentYearlyReport]:
    class_grades = [g for g in grades if g.class_id == class_id]

    names: Dict[str, str] = {}
    by_student: Dict[str, Dict[str, List[SubjectGrade]]] = {}
    all_subjects: Dict[str, None] = {}
    class_periods: Dict[str, None] = {}
    for g in class_grades:
        names.setdefault(g.student_id, g.student_name)
        all_subjects.setdefault(g.subject)
        class_periods.setdefault(g.period)
        by_student.setdefault(g.student_id, {}).setdefault(g.period, []).append(
            SubjectGrade(subject=g.subject, grade=g.grade)
        )

    rows = []
    for sid, raw_periods in by_student.items():
        by_period = {p: remove_duplicate_subjects(entries) for p, entries in raw_periods.items()}

        first: Dict[str, Union[int, float]] = {}
        second: Dict[str, Union[int, float]] = {}
        subject_yearly: Dict[str, float] = {}
        for subject in all_subjects:
            first_avg = _semester_average(by_period, subject, FIRST_SEMESTER_PERIODS, FIRST_SEMESTER_EXAM)
            second_avg = _semester_average(by_period, subject, SECOND_SEMESTER_PERIODS, SECOND_SEMESTER_EXAM)
            if first_avg is not None:
                first[subject] = first_avg
            if second_avg is not None:
                second[subject] = second_avg
            if first_avg is not None and second_avg is not None:
                subject_yearly[subject] = round1((first_avg + second_avg) / 2)
            elif first_avg is not None or second_avg is not None:
                subject_yearly[subject] = first_avg if first_avg is not None else second_avg

        period_averages: Dict[str, float] = {
            p: compute_stats(entries).average for p, entries in by_period.items()
        }
        first_overall = _mean1(first.values())
        second_overall = _mean1(second.values())
        if first_overall is not None:
            period_averages[FIRST_SEMESTER_KEY] = first_overall
        if second_overall is not None:
            period_averages[SECOND_SEMESTER_KEY] = second_overall

        if first_overall is not None and second_overall is not None:
            yearly_average = round1((first_overall + second_overall) / 2)
        elif first_overall is not None or second_overall is not None:
            yearly_average = first_overall if first_overall is not None else second_overall
        else:
            yearly_average = 0
        period_averages[YEARLY_AVERAGE_KEY] = yearly_average

        rows.append({
            "student_id": sid,
            "student_name": names[sid],
            "periods": by_period,
            "first_semester_average": first,
            "second_semester_average": second,
            "yearly_subject_averages": subject_yearly,
            "period_averages": period_averages,
            "yearly_average": yearly_average,
            "ranks": {},
        })

    # ✅ 기간/학기별 석차 (반 전체 기준, 평균이 없으면 0으로 비교)
    rank_keys = list(class_periods) + [FIRST_SEMESTER_KEY, SECOND_SEMESTER_KEY]
    for key in rank_keys:
        ranks = rank_lookup((row["student_id"], row["period_averages"].get(key, 0)) for row in rows)
        for row in rows:
            if row["student_id"] in ranks:
                row["ranks"][key] = ranks[row["student_id"]]

    yearly_ranks = rank_lookup((row["student_id"], row["yearly_average"]) for row in rows)
    for row in rows:
        if row["student_id"] in yearly_ranks:
            row["ranks"][YEARLY_RANK_KEY] = yearly_ranks[row["student_id"]]

    reports = [StudentYearlyReport(**row) for row in rows]
    reports.sort(key=lambda r: r.ranks.get(YEARLY_RANK_KEY, float("inf")))
    logger.debug("yearly report class=%s students=%d subjects=%d", class_id, len(reports), len(all_subjects))
    return _only_requested(reports, student_ids)


# ==========================================================
# [제출 현황 / 전체 목록]
# ==========================================================
def build_submission_report(grades: Sequence[GradeRecord], teacher_id: str) -> GradeSubmissionReport:
    groups: Dict[str, dict] = {}
    for g in grades:
        if g.teacher_id != teacher_id:
            continue
        group = groups.setdefault(g.submission_id, {
            "submission_id": g.submission_id,
            "class_id": g.class_id,
            "subject": g.subject,
            "period": g.period,
            "last_updated": g.last_updated,
            "students": [],
        })
        group["students"].append(SubmissionStudent(
            student_id=g.student_id,
            student_name=g.student_name,
            grade=g.grade,
            status=g.status,
        ))
        if g.last_updated and (group["last_updated"] is None or g.last_updated > group["last_updated"]):
            group["last_updated"] = g.last_updated

    submissions = []
    for group in groups.values():
        statuses = [s.status for s in group["students"]]
        submissions.append(Submission(
            **group,
            total_students=len(statuses),
            pending_count=statuses.count("Pending"),
            approved_count=statuses.count("Approved"),
            rejected_count=statuses.count("Rejected"),
        ))
    # 최근 제출 순
    submissions.sort(key=lambda s: s.last_updated or datetime.min, reverse=True)

    return GradeSubmissionReport(
        teacher_id=teacher_id,
        academic_year=grades[0].academic_year if grades else current_academic_year(),
        submissions=submissions,
    )


def build_all_grades_report(grades: Sequence[GradeRecord], academic_year: str) -> AllGradesReport:
    return AllGradesReport(
        academic_year=academic_year,
        total_records=len(grades),
        grades=list(grades),
    )
