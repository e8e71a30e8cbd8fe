import pytest

from services.grade_reports import build_yearly_report


@pytest.fixture
def year_grades(make_grade):
    return [
        # s1 Math: 1학기 (80+90+70)/3=80, 시험 85 → round(82.5)=83 / 2학기 시험 없음 → 90
        make_grade("s1", "Math", "firstPeriod", 80),
        make_grade("s1", "Math", "secondPeriod", 90),
        make_grade("s1", "Math", "thirdPeriod", 70),
        make_grade("s1", "Math", "thirdPeriodExam", 85),
        make_grade("s1", "Math", "fourthPeriod", 90),
        make_grade("s1", "Math", "fifthPeriod", 90),
        make_grade("s1", "Math", "sixthPeriod", 90),
        # s1 English: 1학기 한 기간만
        make_grade("s1", "English", "firstPeriod", 70),
        # s2: 1학기 Math 한 기간만
        make_grade("s2", "Math", "firstPeriod", 60),
        make_grade("s7", "Math", "firstPeriod", 100, class_id="c2"),
    ]


def _by_id(report):
    return {r.student_id: r for r in report}


def test_semester_average_with_exam(year_grades):
    s1 = _by_id(build_yearly_report(year_grades, "c1"))["s1"]
    assert s1.first_semester_average == {"Math": 83, "English": 70}
    assert s1.second_semester_average == {"Math": 90}


def test_subject_without_semester_periods_is_omitted(year_grades):
    s2 = _by_id(build_yearly_report(year_grades, "c1"))["s2"]
    assert s2.first_semester_average == {"Math": 60}
    assert s2.second_semester_average == {}
    assert "English" not in s2.first_semester_average


def test_yearly_subject_averages(year_grades):
    s1 = _by_id(build_yearly_report(year_grades, "c1"))["s1"]
    assert s1.yearly_subject_averages == {"Math": 86.5, "English": 70}


def test_period_and_semester_averages(year_grades):
    s1 = _by_id(build_yearly_report(year_grades, "c1"))["s1"]

    assert s1.period_averages["firstPeriod"] == 75.0
    assert s1.period_averages["thirdPeriodExam"] == 85.0
    assert s1.period_averages["sixthPeriod"] == 90.0
    assert s1.period_averages["firstSemesterAverage"] == 76.5
    assert s1.period_averages["secondSemesterAverage"] == 90.0


def test_yearly_average(year_grades):
    report = _by_id(build_yearly_report(year_grades, "c1"))
    # (76.5 + 90) / 2 = 83.25 → 83.3
    assert report["s1"].yearly_average == 83.3
    assert report["s1"].period_averages["yearlyAverage"] == 83.3
    # 1학기만 있으면 그 값 그대로
    assert report["s2"].yearly_average == 60.0
    assert "secondSemesterAverage" not in report["s2"].period_averages


def test_ranks_for_every_key(year_grades):
    report = build_yearly_report(year_grades, "c1")

    assert [r.student_id for r in report] == ["s1", "s2"]
    s1, s2 = report
    assert set(s1.ranks) == {
        "firstPeriod", "secondPeriod", "thirdPeriod", "thirdPeriodExam",
        "fourthPeriod", "fifthPeriod", "sixthPeriod",
        "firstSemesterAverage", "secondSemesterAverage", "yearly",
    }
    assert s1.ranks["yearly"] == 1 and s2.ranks["yearly"] == 2
    assert s1.ranks["firstPeriod"] == 1 and s2.ranks["firstPeriod"] == 2
    # s2는 2학기 평균이 없으므로 0으로 비교
    assert s2.ranks["secondSemesterAverage"] == 2


def test_yearly_ties_share_rank(make_grade):
    grades = [
        make_grade("a", "Math", "firstPeriod", 80),
        make_grade("b", "Math", "firstPeriod", 80),
        make_grade("c", "Math", "firstPeriod", 70),
    ]
    report = build_yearly_report(grades, "c1")
    assert {r.student_id: r.ranks["yearly"] for r in report} == {"a": 1, "b": 1, "c": 3}


def test_filter_after_rank(year_grades):
    [only_s2] = build_yearly_report(year_grades, "c1", ["s2"])
    assert only_s2.student_id == "s2"
    assert only_s2.ranks["yearly"] == 2


def test_exam_only_gives_no_semester_average(make_grade):
    [row] = build_yearly_report([make_grade("s1", "Math", "thirdPeriodExam", 95)], "c1")

    assert row.first_semester_average == {}
    assert row.yearly_average == 0
    assert row.period_averages["thirdPeriodExam"] == 95.0


def test_missing_grades_are_skipped(make_grade):
    grades = [
        make_grade("s1", "Math", "firstPeriod", 80),
        make_grade("s1", "Math", "secondPeriod", None),
        make_grade("s1", "Math", "thirdPeriodExam", None),
    ]
    [row] = build_yearly_report(grades, "c1")
    assert row.first_semester_average == {"Math": 80}


def test_semester_rounding_half_up(make_grade):
    grades = [
        make_grade("s1", "Math", "fourthPeriod", 81),
        make_grade("s1", "Math", "fifthPeriod", 82),
        make_grade("s1", "Math", "sixthPeriodExam", 83),
    ]
    [row] = build_yearly_report(grades, "c1")
    # (81.5 + 83) / 2 = 82.25 → 82
    assert row.second_semester_average == {"Math": 82}


def test_other_class_ignored(year_grades):
    assert build_yearly_report(year_grades, "c3") == []
    assert [r.student_id for r in build_yearly_report(year_grades, "c2")] == ["s7"]


def test_yearly_json_shape(year_grades):
    data = build_yearly_report(year_grades, "c1")[0].model_dump(mode="json", by_alias=True)
    assert set(data) == {
        "studentId", "studentName", "periods", "firstSemesterAverage", "secondSemesterAverage",
        "yearlySubjectAverages", "periodAverages", "yearlyAverage", "ranks",
    }
    assert data["periods"]["thirdPeriodExam"] == [{"subject": "Math", "grade": 85.0}]


def test_infinite_grade_does_not_raise(make_grade):
    grades = [
        make_grade("s1", "Math", "firstPeriod", float("inf")),
        make_grade("s2", "Math", "firstPeriod", 80),
    ]
    report = _by_id(build_yearly_report(grades, "c1"))

    assert report["s1"].first_semester_average == {"Math": float("inf")}
    assert report["s1"].ranks["yearly"] == 1
    assert report["s2"].first_semester_average == {"Math": 80}
    assert report["s2"].ranks["yearly"] == 2
