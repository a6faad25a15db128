from conftest import RecordingGradebook
from src.course_attendance.course_attendance.grades.service import GradeAggregator
from src.course_attendance.course_attendance.livetake.service import LiveCheckoffGateway, LiveCheckoffRequest


def test_check_off_by_idnumber_fills_absentees(world):
    result = world.gateway.check_off(world.instance, LiveCheckoffRequest("idnumber", "1001002", 1), acting_user_id=7)

    payload = result.to_payload()
    assert payload["status"] == "success"
    assert (payload["firstname"], payload["lastname"]) == ("Bob", "Baker")
    assert payload["userdate"]

    by_student = {r.student_id: r for r in world.log.get_session_log(1)}
    assert by_student[102].status_id == 1
    assert by_student[102].remarks == f"In class at {payload['userdate']}"
    assert by_student[101].status_id == 3
    assert by_student[103].status_id == 3
    assert world.sessions_repo.get_by_id(1).last_taken_by == 7
    assert set(world.gradebook.pushes[0]) == {101, 102, 103}


def test_second_scan_upgrades_absent_student(world):
    world.gateway.check_off(world.instance, LiveCheckoffRequest("idnumber", "1001002", 1), acting_user_id=7)

    result = world.gateway.check_off(world.instance, LiveCheckoffRequest("userid", "101", 1), acting_user_id=7)

    assert result.ok
    rows = world.log.get_session_log(1)
    assert len(rows) == 3
    assert {r.student_id: r.status_id for r in rows} == {101: 1, 102: 1, 103: 3}


def test_unknown_mode_is_typed_failure(world):
    result = world.gateway.check_off(world.instance, LiveCheckoffRequest("badge", "1001002", 1), acting_user_id=7)

    assert result.to_payload() == {"status": "importerror", "uid": "1001002", "message": "invalid mode"}
    assert world.attendance_repo.rows == {}


def test_lookup_and_store_failures_never_raise(world):
    assert not world.gateway.check_off(world.instance, LiveCheckoffRequest("idnumber", "nobody", 1), acting_user_id=7).ok
    assert not world.gateway.check_off(world.instance, LiveCheckoffRequest("userid", "abc", 1), acting_user_id=7).ok
    assert not world.gateway.check_off(world.instance, LiveCheckoffRequest("userid", "101", 42), acting_user_id=7).ok

    def broken_upsert(mark):
        raise RuntimeError("Duplicate entry")

    world.attendance_repo.upsert = broken_upsert
    result = world.gateway.check_off(world.instance, LiveCheckoffRequest("userid", "101", 1), acting_user_id=7)

    assert result.to_payload() == {"status": "importerror", "uid": "101", "message": "Duplicate entry"}


def test_gradebook_outage_still_reports_saved_marks(world):
    grades = GradeAggregator(
        world.attendance_repo, world.catalog, RecordingGradebook(fail=RuntimeError("locked")), world.directory
    )
    gateway = LiveCheckoffGateway(world.directory, world.catalog, world.sessions, world.log, grades)

    result = gateway.check_off(world.instance, LiveCheckoffRequest("idnumber", "1001002", 1), acting_user_id=7)

    assert result.ok
    assert {r.student_id: r.status_id for r in world.log.get_session_log(1)} == {101: 3, 102: 1, 103: 3}
