from datetime import datetime
from decimal import Decimal
from fractions import Fraction

import pytest

from conftest import RecordingGradebook
from src.course_attendance.course_attendance.core.exceptions import GradebookPushFailed
from src.course_attendance.course_attendance.grades.service import GradeAggregator
from src.course_attendance.course_attendance.sessions.model import Session


def _take(world, student_id, session_id, acronym):
    status = world.catalog.resolve(1, acronym)
    world.log.upsert(
        instance_id=1, student_id=student_id, session_id=session_id, status_id=status.status_id, acting_user_id=7
    )


def _add_session(world, session_id, start):
    world.sessions_repo.by_id[session_id] = Session(session_id, 1, start, 3600)


def test_zero_sessions_is_zero_fraction(world):
    assert world.grades.grade_fraction(world.instance, 101) == Fraction(0)
    assert world.grades.scaled_grade(world.instance, 101) == Decimal("0")


def test_fraction_weights_statuses(world, fixed_now):
    _add_session(world, 2, fixed_now.replace(day=3))
    _add_session(world, 3, fixed_now.replace(day=4))
    _take(world, 101, 1, "P")
    _take(world, 101, 2, "L")
    _take(world, 101, 3, "A")

    # (2 + 1 + 0) / (3 * 2)
    assert world.grades.grade_fraction(world.instance, 101) == Fraction(1, 2)
    assert world.grades.user_stat(world.instance, 101).completed == 3
    assert world.grades.user_stat(world.instance, 101).statuses == {1: 1, 2: 1, 3: 1}


def test_sessions_before_course_start_are_ignored(world):
    _add_session(world, 2, datetime(2025, 12, 31, 9, 0))
    _take(world, 101, 1, "P")
    _take(world, 101, 2, "A")

    assert world.grades.grade_fraction(world.instance, 101) == Fraction(1)


def test_no_visible_status_is_zero_fraction(world):
    _take(world, 101, 1, "P")
    for status_id in (1, 2, 3):
        world.catalog.update_status(status_id=status_id, visible=False)

    world.grades.clear_cache()
    assert world.grades.grade_fraction(world.instance, 101) == Fraction(0)


def test_deleted_status_still_weighs_old_records(world, fixed_now):
    _add_session(world, 2, fixed_now.replace(day=3))
    _take(world, 101, 1, "L")
    _take(world, 101, 2, "P")
    world.catalog.remove_status(2)

    assert world.grades.grade_fraction(world.instance, 101) == Fraction(3, 4)


def test_stats_are_memoized_until_forgotten(world):
    _take(world, 101, 1, "A")
    assert world.grades.grade_fraction(world.instance, 101) == Fraction(0)

    _take(world, 101, 1, "P")
    assert world.grades.grade_fraction(world.instance, 101) == Fraction(0)

    world.grades.forget(world.instance, [101])
    assert world.grades.grade_fraction(world.instance, 101) == Fraction(1)


def test_update_grades_scales_to_instance_max(world):
    _take(world, 101, 1, "L")

    grades = world.grades.update_grades(world.instance, [101, 102, 101])

    assert grades == {101: Decimal("50.00000"), 102: Decimal("0.00000")}
    assert world.gradebook.pushes == [grades]


def test_update_all_grades_covers_enrolment(world):
    grades = world.grades.update_all_grades(world.instance)

    assert sorted(grades) == [101, 102, 103]


def test_gradebook_failure_is_surfaced(world):
    failing = GradeAggregator(
        world.attendance_repo, world.catalog, RecordingGradebook(fail=RuntimeError("locked")), world.directory
    )

    with pytest.raises(GradebookPushFailed) as exc:
        failing.update_grades(world.instance, [101])

    assert isinstance(exc.value.__cause__, RuntimeError)


def test_hidden_status_above_top_caps_fraction_at_one(world):
    extra = world.catalog.add_status(instance_id=1, acronym="E", description="Excellent", grade="4")
    world.catalog.update_status(status_id=extra, visible=False)
    world.log.upsert(instance_id=1, student_id=101, session_id=1, status_id=extra, acting_user_id=7)

    assert world.grades.grade_fraction(world.instance, 101) == Fraction(1)
    assert world.grades.scaled_grade(world.instance, 101) == Decimal("100.00000")


def test_negative_points_floor_fraction_at_zero(world):
    penalty = world.catalog.add_status(instance_id=1, acronym="U", description="Unexcused", grade="-2")
    world.log.upsert(instance_id=1, student_id=101, session_id=1, status_id=penalty, acting_user_id=7)

    assert world.grades.grade_fraction(world.instance, 101) == Fraction(0)
    assert world.grades.scaled_grade(world.instance, 101) == Decimal("0")
