from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database.db import get_db
from schemas.grades import (
    GradeOut, GradeResubmitRequest, GradeStatusUpdateBody, GradeSubmitRequest,
)
from services import grade_service
from services.grade_reports import (
    build_all_grades_report, build_masters_report, build_periodic_report,
    build_submission_report, build_yearly_report, current_academic_year, parse_student_ids,
)
from services.grade_service import GradeWriteError

router = APIRouter(prefix="/grades", tags=["grades"])


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _dump(report):
    # camelCase 별칭으로 직렬화 (리스트/단일 객체 모두)
    if isinstance(report, list):
        return [r.model_dump(mode="json", by_alias=True) for r in report]
    return report.model_dump(mode="json", by_alias=True)


def _rows_out(rows) -> List[dict]:
    return [GradeOut.model_validate(r).model_dump(mode="json", by_alias=True) for r in rows]


# ==========================================================
# [조회] 성적표 (정기 / 마스터 / 연간 / 제출 현황 / 전체)
# ==========================================================
@router.get("")
def get_grade_report(
    academic_year: Optional[str] = Query(None, alias="academicYear"),
    class_id: Optional[str] = Query(None, alias="classId"),
    period: Optional[str] = None,
    subject: Optional[str] = None,
    report_type: Optional[str] = Query(None, alias="reportType"),
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    student_ids_raw: Optional[str] = Query(None, alias="studentIds"),
    db: Session = Depends(get_db),
):
    academic_year = academic_year or current_academic_year()
    student_ids = parse_student_ids(student_ids_raw)

    # ✅ 학년도만 지정 → 전체 레코드 목록
    if not any([class_id, period, subject, report_type, teacher_id, student_ids]):
        grades = grade_service.find_grades(db, academic_year)
        body = {"success": True, "data": {"report": _dump(build_all_grades_report(grades, academic_year)),
                                          "academicYear": academic_year}}
        if not grades:
            body["message"] = "No grades found for this academic year."
        return body

    # ✅ 교사별 제출 현황
    if report_type == "gradeSubmission":
        if not teacher_id:
            return _fail(400, "teacherId is required for grade submission reports")
        grades = grade_service.find_grades(db, academic_year, teacher_id=teacher_id)
        report = build_submission_report(grades, teacher_id)
        body = {"success": True, "data": {"report": _dump(report), "academicYear": academic_year,
                                          "teacherId": teacher_id}}
        if not grades:
            body["message"] = "No grade submissions found for this teacher."
        return body

    # ✅ 반이 없으면 첫 번째 학생의 기록에서 반을 찾음
    if not class_id and student_ids:
        class_id = grade_service.find_class_of_student(db, student_ids[0], academic_year)
        if not class_id:
            return {"success": True, "message": "No grades found for the student to determine class.",
                    "data": {"report": []}}

    # 석차 계산을 위해 선택 학생과 무관하게 반 전체 성적을 가져옴
    class_grades = grade_service.find_grades(db, academic_year, class_id=class_id) if class_id else []

    if period:
        if not class_id:
            return _fail(400, "classId is required for periodic reports")
        report = build_periodic_report(class_grades, class_id, period, student_ids)
        if student_ids and len(student_ids) == 1 and len(report) == 1:
            report = report[0]
    elif subject:
        report = build_masters_report(class_grades, class_id or "", subject, teacher_id, student_ids)
    else:
        if not class_id:
            return _fail(400, "classId is required for yearly reports")
        report = build_yearly_report(class_grades, class_id, student_ids)
        if student_ids and len(student_ids) == 1 and len(report) == 1:
            report = report[0]

    return {
        "success": True,
        "data": {
            "report": _dump(report),
            "academicYear": academic_year,
            "classId": class_id,
            "period": period,
            "studentIds": student_ids,
        },
    }


# ==========================================================
# [CREATE] 성적 제출
# ==========================================================
@router.post("", status_code=201)
def submit_grades(payload: GradeSubmitRequest, db: Session = Depends(get_db)):
    try:
        rows = grade_service.submit_grades(db, payload.class_id, payload.subject, payload.teacher_id, payload.grades)
    except GradeWriteError as e:
        return _fail(e.status_code, e.message)
    return {"success": True, "data": _rows_out(rows)}


# ==========================================================
# [UPDATE] 제출 묶음 재제출
# ==========================================================
@router.put("")
def resubmit_grades(payload: GradeResubmitRequest, db: Session = Depends(get_db)):
    try:
        rows = grade_service.resubmit_grades(db, payload.submission_id, payload.teacher_id, payload.grades)
    except GradeWriteError as e:
        return _fail(e.status_code, e.message)
    return {"success": True, "data": _rows_out(rows)}


# ==========================================================
# [PATCH] 승인/반려 상태 변경 (단건 또는 목록)
# ==========================================================
@router.patch("")
def update_grade_status(body: GradeStatusUpdateBody = Body(...), db: Session = Depends(get_db)):
    updates = body if isinstance(body, list) else [body]

    results = []
    for u in updates:
        result = {"submissionId": u.submission_id, "studentId": u.student_id}
        if not u.submission_id or not u.student_id or not u.status:
            results.append({"success": False, "message": "Missing required fields", **result})
            continue
        try:
            row = grade_service.update_grade_status(db, u.submission_id, u.student_id, u.status)
        except GradeWriteError as e:
            results.append({"success": False, "data": e.message, "status": e.status_code, **result})
            continue
        results.append({"success": True, "data": _rows_out([row])[0], **result})

    succeeded = sum(1 for r in results if r["success"])
    return {
        "success": True,
        "message": f"{succeeded} updates succeeded, {len(results) - succeeded} failed.",
        "results": results,
    }
