from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from school_attendance.core.enums import AttendanceStatus
from school_attendance.core.exceptions import ConflictError, NotFoundError, ValidationError

DAY = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _records(*pairs):
    return [{"studentId": sid, "status": status} for sid, status in pairs]


def test_first_submission_creates_day(service, attendance_repo):
    result = service.record_attendance(
        date="2024-03-01",
        grade="5A",
        entries=_records(("S1", "Present"), ("S2", "Absent")),
        recorded_by="T1",
    )

    assert result.status == "created"
    assert result.record.date == DAY
    assert result.record.recorded_by == "T1"
    assert {(e.student_id, e.status) for e in result.record.entries} == {
        ("S1", AttendanceStatus.PRESENT),
        ("S2", AttendanceStatus.ABSENT),
    }
    assert len(attendance_repo.all_days()) == 1
    assert attendance_repo.writes == 1


def test_disjoint_second_batch_is_appended(service, attendance_repo):
    service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S1", "Present")), recorded_by="T1")

    result = service.record_attendance(
        date="2024-03-01",
        grade="5A",
        entries=_records(("S2", "Absent"), ("S3", "Present")),
        recorded_by="T1",
    )

    assert result.status == "updated"
    assert [e.student_id for e in result.record.entries] == ["S1", "S2", "S3"]
    assert len(attendance_repo.all_days()) == 1
    assert attendance_repo.writes == 2


def test_overlapping_batch_is_rejected_whole(service, attendance_repo):
    service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S1", "Present")), recorded_by="T1")

    with pytest.raises(ConflictError, match="already recorded"):
        service.record_attendance(
            date="2024-03-01",
            grade="5A",
            entries=_records(("S3", "Present"), ("S1", "Absent")),
            recorded_by="T1",
        )

    days = service.query_attendance("2024-03-01", "5A")
    assert [r.student_id for r in days[0].records] == ["S1"]
    assert days[0].records[0].status == AttendanceStatus.PRESENT
    assert attendance_repo.writes == 1


def test_same_student_other_grade_is_independent(service):
    service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S1", "Present")), recorded_by="T1")
    result = service.record_attendance(date="2024-03-01", grade="5B", entries=_records(("S1", "Present")), recorded_by="T1")

    assert result.status == "created"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"date": "", "grade": "5A", "entries": _records(("S1", "Present"))},
        {"date": None, "grade": "5A", "entries": _records(("S1", "Present"))},
        {"date": "2024-03-01", "grade": "  ", "entries": _records(("S1", "Present"))},
        {"date": "2024-03-01", "grade": "5A", "entries": []},
        {"date": "2024-03-01", "grade": "5A", "entries": None},
    ],
)
def test_missing_fields_rejected(service, attendance_repo, kwargs):
    with pytest.raises(ValidationError, match="missing required fields"):
        service.record_attendance(recorded_by="T1", **kwargs)
    assert attendance_repo.writes == 0


def test_unknown_teacher_rejected(service, attendance_repo):
    with pytest.raises(NotFoundError, match="teacher not found"):
        service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S1", "Present")), recorded_by="T404")
    assert attendance_repo.writes == 0


def test_missing_fields_checked_before_teacher(service):
    with pytest.raises(ValidationError):
        service.record_attendance(date="", grade="5A", entries=_records(("S1", "Present")), recorded_by="T404")


def test_incomplete_record_rejected(service, attendance_repo):
    with pytest.raises(ValidationError, match="incomplete record"):
        service.record_attendance(
            date="2024-03-01",
            grade="5A",
            entries=[{"studentId": "S1", "status": "Present"}, {"studentId": "S2"}],
            recorded_by="T1",
        )
    assert attendance_repo.writes == 0


def test_late_status_is_not_accepted(service, attendance_repo):
    with pytest.raises(ValidationError, match="invalid status"):
        service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S1", "Late")), recorded_by="T1")
    assert attendance_repo.writes == 0


def test_duplicate_student_in_batch_rejected(service, attendance_repo):
    with pytest.raises(ConflictError, match="duplicate student in submission"):
        service.record_attendance(
            date="2024-03-01",
            grade="5A",
            entries=_records(("S1", "Present"), ("S1", "Absent")),
            recorded_by="T1",
        )
    assert attendance_repo.writes == 0


def test_incomplete_wins_over_duplicate(service):
    with pytest.raises(ValidationError):
        service.record_attendance(
            date="2024-03-01",
            grade="5A",
            entries=[{"studentId": "S1", "status": "Present"}, {"studentId": "S1", "status": "Present"}, {}],
            recorded_by="T1",
        )


def test_invalid_date_rejected(service):
    with pytest.raises(ValidationError, match="invalid date"):
        service.record_attendance(date="not-a-date", grade="5A", entries=_records(("S1", "Present")), recorded_by="T1")


def test_timezone_variants_collide_on_one_day(service, attendance_repo):
    service.record_attendance(
        date="2024-03-01T23:30:00-05:00", grade="5A", entries=_records(("S1", "Present")), recorded_by="T1"
    )
    result = service.record_attendance(
        date="2024-03-01T00:15:00+09:00", grade="5A", entries=_records(("S2", "Present")), recorded_by="T1"
    )

    assert result.status == "updated"
    assert len(attendance_repo.all_days()) == 1
    assert service.query_attendance("2024-03-01")[0].date == DAY


def test_snake_case_entries_and_date_objects_accepted(service):
    result = service.record_attendance(
        date=date(2024, 3, 1),
        grade="5A",
        entries=[{"student_id": "S1", "status": AttendanceStatus.ABSENT}],
        recorded_by="T1",
    )
    assert result.record.date == DAY
    assert result.record.entries[0].status == AttendanceStatus.ABSENT


def test_concurrent_creator_loses_insert_then_merges(service, attendance_repo):
    original_find_one = attendance_repo.find_one
    calls = {"n": 0}

    def racing_find_one(*, date, grade):
        calls["n"] += 1
        if calls["n"] == 1:
            # Another request creates the day right after our lookup.
            attendance_repo.add_raw(date=date, grade=grade, recorded_by="T1", entries=())
            return None
        return original_find_one(date=date, grade=grade)

    attendance_repo.find_one = racing_find_one
    result = service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S2", "Absent")), recorded_by="T1")

    assert result.status == "updated"
    assert len(attendance_repo.all_days()) == 1


def test_concurrent_overlap_observes_conflict(service, attendance_repo):
    from school_attendance.attendance.model import AttendanceEntry

    original_find_one = attendance_repo.find_one
    calls = {"n": 0}

    def racing_find_one(*, date, grade):
        calls["n"] += 1
        if calls["n"] == 1:
            attendance_repo.add_raw(
                date=date, grade=grade, recorded_by="T1",
                entries=(AttendanceEntry("S2", AttendanceStatus.PRESENT),),
            )
            return None
        return original_find_one(date=date, grade=grade)

    attendance_repo.find_one = racing_find_one
    with pytest.raises(ConflictError):
        service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S2", "Absent")), recorded_by="T1")

    assert [e.status for e in attendance_repo.all_days()[0].entries] == [AttendanceStatus.PRESENT]


def test_query_uses_half_open_day_range(service, attendance_repo):
    from school_attendance.attendance.model import AttendanceEntry

    attendance_repo.add_raw(
        date=datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc),
        grade="5A",
        recorded_by="T1",
        entries=(AttendanceEntry("S1", AttendanceStatus.PRESENT),),
    )
    attendance_repo.add_raw(date=datetime(2024, 3, 2, tzinfo=timezone.utc), grade="5A", recorded_by="T1")

    days = service.query_attendance("2024-03-01")

    assert len(days) == 1
    assert days[0].records[0].student_name == "Liam Carter"


def test_query_resolves_names_with_placeholders(service, students_repo):
    service.record_attendance(
        date="2024-03-01",
        grade="5A",
        entries=_records(("S1", "Present"), ("GHOST", "Absent")),
        recorded_by="T1",
    )
    students_repo.lookups.clear()

    view = service.query_attendance("2024-03-01", "5A")[0]

    assert view.teacher_name == "Amina Okafor"
    assert [r.student_name for r in view.records] == ["Liam Carter", "Unknown Student"]
    assert len(students_repo.lookups) == 1


def test_query_grade_filter_and_empty_result(service):
    service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S1", "Present")), recorded_by="T1")
    service.record_attendance(date="2024-03-01", grade="5B", entries=_records(("S4", "Present")), recorded_by="T1")

    assert [d.grade for d in service.query_attendance("2024-03-01")] == ["5A", "5B"]
    assert [d.grade for d in service.query_attendance("2024-03-01", "5B")] == ["5B"]
    assert service.query_attendance("2024-03-02") == []


def test_query_requires_date(service):
    with pytest.raises(ValidationError):
        service.query_attendance("")


def test_clear_attendance_counts_and_is_idempotent(service):
    assert service.clear_attendance("2024-03-01").deleted_count == 0

    service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S1", "Present")), recorded_by="T1")
    service.record_attendance(date="2024-03-01", grade="5B", entries=_records(("S4", "Present")), recorded_by="T1")
    service.record_attendance(date="2024-03-02", grade="5A", entries=_records(("S1", "Present")), recorded_by="T1")

    result = service.clear_attendance("2024-03-01")

    assert result.to_dict() == {"deletedCount": 2}
    assert service.query_attendance("2024-03-01") == []
    assert len(service.query_attendance("2024-03-02")) == 1


def test_rerecord_after_clear_creates_again(service):
    service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S1", "Present")), recorded_by="T1")
    service.clear_attendance("2024-03-01")

    result = service.record_attendance(date="2024-03-01", grade="5A", entries=_records(("S1", "Absent")), recorded_by="T1")

    assert result.status == "created"


def test_report_rows(service):
    service.record_attendance(
        date="2024-03-01", grade="5A", entries=_records(("S1", "Present"), ("S2", "Absent")), recorded_by="T1"
    )

    rows = service.build_report_rows("2024-03-01")

    assert rows[1] == {
        "date": "2024-03-01",
        "grade": "5A",
        "teacher": "Amina Okafor",
        "student_id": "S2",
        "student_name": "Noah Bennett",
        "status": "Absent",
    }


def test_dashboard_stats(service):
    service.record_attendance(
        date="2024-03-01",
        grade="5A",
        entries=_records(("S1", "Present"), ("S2", "Absent"), ("S3", "Present")),
        recorded_by="T1",
    )
    service.record_attendance(date="2024-02-29", grade="5B", entries=_records(("S4", "Present")), recorded_by="T1")

    stats = service.dashboard_stats(today=date(2024, 3, 1))

    assert stats.total_students == 4
    assert (stats.present_today, stats.absent_today, stats.percentage) == (2, 1, 67)
    assert [a["date"] for a in stats.recent_activity] == ["2024-03-01", "2024-02-29"]
    assert stats.recent_activity[0] == {
        "date": "2024-03-01",
        "grade": "5A",
        "teacher": "Amina Okafor",
        "presentCount": 2,
        "absentCount": 1,
    }


def test_dashboard_stats_without_records(service):
    stats = service.dashboard_stats(today=date(2024, 3, 1))

    assert stats.percentage == 0
    assert stats.recent_activity == []


def test_query_and_export_strip_grade_like_record(service):
    service.record_attendance(date="2024-03-01", grade=" 5A ", entries=_records(("S1", "Present")), recorded_by="T1")

    assert len(service.query_attendance("2024-03-01", " 5A ")) == 1
    assert len(service.query_attendance("2024-03-01", "   ")) == 1
    assert [r["grade"] for r in service.build_report_rows("2024-03-01", "5A ")] == ["5A"]


@pytest.mark.parametrize("entries", [5, True, "S1", {"studentId": "S1", "status": "Present"}])
def test_non_list_entries_rejected(service, attendance_repo, entries):
    with pytest.raises(ValidationError, match="missing required fields"):
        service.record_attendance(date="2024-03-01", grade="5A", entries=entries, recorded_by="T1")
    assert attendance_repo.writes == 0
