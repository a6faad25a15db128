import csv

import pytest

from src.course_attendance.course_attendance.core.enums import ImportFailure
from src.course_attendance.course_attendance.core.exceptions import ValidationError
from src.course_attendance.course_attendance.importer import parser


def test_failed_line_does_not_affect_siblings(world, fixed_now):
    text = "1001001\nbogus,Codabar,31/02/2020 10:00:00,P\n1001002,Codabar,,A\n"

    result = world.batch.run(world.instance, text, default_status="P", default_time=fixed_now, acting_user_id=900)

    assert result.success_count == 2
    assert result.errors == [("bogus,Codabar,31/02/2020 10:00:00,P", ImportFailure.INVALID_DATE)]
    assert result.userdata == "bogus,Codabar,31/02/2020 10:00:00,P\n"
    assert world.attendance_repo.get_for_student_and_session(student_id=101, session_id=1).status_id == 1
    assert world.attendance_repo.get_for_student_and_session(student_id=102, session_id=1).status_id == 3


def test_unreadable_line_is_isolated_from_siblings(world, fixed_now, monkeypatch):
    split_fields = parser.split_fields

    def split_or_reject_nul(line):
        if "\x00" in line:
            raise csv.Error("line contains NUL")
        return split_fields(line)

    monkeypatch.setattr(parser, "split_fields", split_or_reject_nul)
    text = "1001\x00001\n1001001\n"

    result = world.batch.run(world.instance, text, default_status="P", default_time=fixed_now, acting_user_id=900)

    assert result.success_count == 1
    assert result.errors == [("1001\x00001", ImportFailure.INVALID_FORMAT)]
    assert world.attendance_repo.get_for_student_and_session(student_id=101, session_id=1).status_id == 1


def test_retry_buffer_is_persisted_and_keeps_layout(world, fixed_now):
    text = "\nnobody\n\n1001001\nalso-nobody"

    result = world.batch.run(world.instance, text, default_status="P", default_time=fixed_now, acting_user_id=900)

    # Leading blank line dropped; the one after a kept line survives.
    assert result.userdata == "nobody\n\nalso-nobody\n"
    assert world.instances_repo.get_by_id(1).last_import == result.userdata
    assert [reason for _, reason in result.errors] == [ImportFailure.INVALID_USER, ImportFailure.INVALID_USER]


def test_omitted_students_get_default_status(world, fixed_now):
    world.batch.run(
        world.instance,
        "1001001",
        default_status="Present",
        omitted_status="A",
        default_time=fixed_now,
        acting_user_id=900,
    )

    by_student = {r.student_id: r.status_id for r in world.log.get_session_log(1)}
    assert by_student == {101: 1, 102: 3, 103: 3}
    assert world.sessions_repo.get_by_id(1).last_taken_by == 900


def test_no_change_leaves_omitted_students_alone(world, fixed_now):
    world.batch.run(world.instance, "1001001", default_status="P", default_time=fixed_now, acting_user_id=900)

    assert [r.student_id for r in world.log.get_session_log(1)] == [101]


def test_grades_pushed_for_imported_and_filled_students(world, fixed_now):
    world.batch.run(
        world.instance,
        "1001001\n1001002,Codabar,,L",
        default_status="P",
        omitted_status="A",
        default_time=fixed_now,
        acting_user_id=900,
    )

    assert len(world.gradebook.pushes) == 1
    grades = world.gradebook.pushes[0]
    assert {uid: str(g) for uid, g in grades.items()} == {101: "100.00000", 102: "50.00000", 103: "0.00000"}


def test_nothing_imported_pushes_nothing(world, fixed_now):
    result = world.batch.run(world.instance, "nobody", default_status="P", default_time=fixed_now, acting_user_id=900)

    assert result.success_count == 0
    assert world.gradebook.pushes == []
    assert world.sessions_repo.get_by_id(1).last_taken is None


def test_unknown_default_status_is_fatal(world, fixed_now):
    with pytest.raises(ValidationError):
        world.batch.run(world.instance, "1001001", default_status="Z", default_time=fixed_now, acting_user_id=900)
    with pytest.raises(ValidationError):
        world.batch.run(
            world.instance, "1001001", default_status="P", omitted_status="Z", default_time=fixed_now, acting_user_id=900
        )

    assert world.attendance_repo.rows == {}


def test_default_import_time_is_latest_session_start(world, fixed_now):
    assert world.batch.default_import_time(world.instance, now=fixed_now) == fixed_now.replace(minute=0)
    assert world.batch.default_import_time(world.instance, now=fixed_now.replace(hour=8)) is None


def test_payload_shape(world, fixed_now):
    result = world.batch.run(world.instance, "nobody", default_status="P", default_time=fixed_now, acting_user_id=900)

    assert result.to_payload() == {
        "success_count": 0,
        "errors": [{"line": "nobody", "reason": "invalid_user"}],
        "userdata": "nobody\n",
    }
