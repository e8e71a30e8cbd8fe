from services.grade_reports import build_masters_report


def _grades(make_grade):
    return [
        make_grade("s1", "Math", "firstPeriod", 80),
        make_grade("s1", "Math", "secondPeriod", 90),
        make_grade("s2", "Math", "firstPeriod", 60),
        make_grade("s2", "Math", "secondPeriod", None),
        make_grade("s1", "English", "firstPeriod", 100, teacher_id="t2"),
        make_grade("s5", "Math", "firstPeriod", 99, class_id="c2"),
    ]


def test_masters_report_for_subject(make_grade):
    report = build_masters_report(_grades(make_grade), "c1", "Math")

    assert report.subject == "Math"
    assert report.teacher_id == "All Teachers"
    assert report.class_id == "c1"
    students = {s.student_id: s for s in report.students}
    assert set(students) == {"s1", "s2"}
    assert students["s1"].periods == {"firstPeriod": 80, "secondPeriod": 90}
    assert students["s1"].overall_average == 85.0
    assert students["s2"].periods == {"firstPeriod": 60, "secondPeriod": None}
    assert students["s2"].overall_average == 60.0


def test_masters_period_stats(make_grade):
    report = build_masters_report(_grades(make_grade), "c1", "Math")

    first = report.period_stats["firstPeriod"]
    assert (first.passes, first.fails, first.incompletes, first.total_students) == (1, 1, 0, 2)
    assert first.average == 70.0
    second = report.period_stats["secondPeriod"]
    assert (second.passes, second.fails, second.incompletes) == (1, 0, 1)
    assert second.average == 90.0


def test_masters_all_subjects(make_grade):
    report = build_masters_report(_grades(make_grade), "c1")

    assert report.subject == "All Subjects"
    s1 = next(s for s in report.students if s.student_id == "s1")
    assert s1.overall_average == 90.0


def test_masters_teacher_filter(make_grade):
    report = build_masters_report(_grades(make_grade), "c1", teacher_id="t2")

    assert report.teacher_id == "t2"
    assert [s.student_id for s in report.students] == ["s1"]
    assert list(report.period_stats) == ["firstPeriod"]


def test_masters_student_filter_applies_before_stats(make_grade):
    report = build_masters_report(_grades(make_grade), "c1", "Math", student_ids=["s1"])

    assert [s.student_id for s in report.students] == ["s1"]
    assert report.period_stats["firstPeriod"].total_students == 1
    assert report.period_stats["firstPeriod"].average == 80.0


def test_masters_empty_result(make_grade):
    report = build_masters_report(_grades(make_grade), "c1", "Science")
    assert report.students == []
    assert report.period_stats == {}


def test_masters_json_shape(make_grade):
    data = build_masters_report(_grades(make_grade), "c1", "Math").model_dump(mode="json", by_alias=True)
    assert set(data) == {"subject", "teacherId", "classId", "students", "periodStats"}
    assert set(data["students"][0]) == {"studentId", "studentName", "periods", "overallAverage"}
    assert "totalStudents" in data["periodStats"]["firstPeriod"]
