from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytest

from src.course_attendance.course_attendance.attendance.model import AttendanceMark, AttendanceRecord
from src.course_attendance.course_attendance.attendance.service import AttendanceLog
from src.course_attendance.course_attendance.grades.service import GradeAggregator
from src.course_attendance.course_attendance.importer.batch import ImportBatchService
from src.course_attendance.course_attendance.importer.service import RecordImporter
from src.course_attendance.course_attendance.instances.model import AttendanceInstance
from src.course_attendance.course_attendance.instances.service import InstanceService
from src.course_attendance.course_attendance.livetake.service import LiveCheckoffGateway
from src.course_attendance.course_attendance.sessions.model import NewSession, Session
from src.course_attendance.course_attendance.sessions.service import SessionService
from src.course_attendance.course_attendance.statuses.model import Status
from src.course_attendance.course_attendance.statuses.service import StatusCatalog
from src.course_attendance.course_attendance.users.model import Student
from src.course_attendance.course_attendance.users.service import IdentityDirectory


class InMemoryStatuses:
    def __init__(self, statuses=()):
        self.by_id: dict[int, Status] = {s.status_id: s for s in statuses}
        self.log_counts: dict[int, int] = {}

    def list_for_instance(self, instance_id, *, only_visible=True, include_deleted=False):
        rows = [
            s
            for s in self.by_id.values()
            if s.instance_id == instance_id and (include_deleted or not s.deleted) and (not only_visible or s.visible)
        ]
        rows.sort(key=lambda s: (-s.grade, s.status_id))
        return rows

    def get_by_id(self, status_id):
        return self.by_id.get(status_id)

    def create(self, *, instance_id, acronym, description, grade):
        status_id = max(self.by_id, default=0) + 1
        self.by_id[status_id] = Status(status_id, instance_id, acronym, description, Decimal(grade))
        return status_id

    def update(self, *, status_id, acronym=None, description=None, grade=None, visible=None):
        status = self.by_id.get(status_id)
        if status is None:
            return False
        changes = {
            k: v
            for k, v in {"acronym": acronym, "description": description, "grade": grade, "visible": visible}.items()
            if v is not None
        }
        self.by_id[status_id] = replace(status, **changes)
        return True

    def soft_delete(self, status_id):
        status = self.by_id.get(status_id)
        if status is None or status.deleted:
            return False
        self.by_id[status_id] = replace(status, deleted=True)
        return True

    def count_logs(self, status_id):
        return self.log_counts.get(status_id, 0)


class InMemorySessions:
    def __init__(self, sessions=()):
        self.by_id: dict[int, Session] = {s.session_id: s for s in sessions}

    def get_by_id(self, session_id):
        return self.by_id.get(session_id)

    def find_covering(self, *, instance_id, at):
        covering = [s for s in self.by_id.values() if s.instance_id == instance_id and s.covers(at)]
        covering.sort(key=lambda s: (s.end_time, s.session_id))
        return covering[0] if covering else None

    def find_most_recent_start(self, *, instance_id, before_or_at):
        starts = [s.start_time for s in self.by_id.values() if s.instance_id == instance_id and s.start_time <= before_or_at]
        return max(starts) if starts else None

    def list_in_window(self, *, instance_id, start, end, group_id=None):
        rows = [
            s
            for s in self.by_id.values()
            if s.instance_id == instance_id
            and start <= s.start_time < end
            and (group_id is None or s.group_id == group_id)
        ]
        return sorted(rows, key=lambda s: (s.start_time, s.session_id))

    def create(self, *, instance_id, session: NewSession):
        session_id = max(self.by_id, default=0) + 1
        self.by_id[session_id] = Session(
            session_id=session_id,
            instance_id=instance_id,
            start_time=session.start_time,
            duration=session.duration,
            group_id=session.group_id,
            description=session.description,
        )
        return session_id

    def set_last_taken(self, *, session_id, at, taken_by):
        session = self.by_id.get(session_id)
        if session is None:
            return False
        self.by_id[session_id] = replace(session, last_taken=at, last_taken_by=taken_by)
        return True

    def update_duration(self, *, session_ids, duration, modified_at):
        n = 0
        for sid in session_ids:
            if sid in self.by_id:
                self.by_id[sid] = replace(self.by_id[sid], duration=duration)
                n += 1
        return n

    def delete(self, *, session_ids):
        return sum(1 for sid in session_ids if self.by_id.pop(sid, None) is not None)


class InMemoryUsers:
    def __init__(self, students=(), *, enrolments=None, groups=None, profile=None):
        self.by_id: dict[int, Student] = {s.user_id: s for s in students}
        # course_id -> [user_id]; group_id -> {user_id}; (shortname, value) -> user_id
        self.enrolments: dict[int, list[int]] = enrolments or {}
        self.groups: dict[int, set[int]] = groups or {}
        self.profile: dict[tuple[str, str], int] = profile or {}

    def get_by_id(self, user_id):
        return self.by_id.get(user_id)

    def get_by_idnumber(self, idnumber):
        for s in self.by_id.values():
            if s.idnumber and s.idnumber == idnumber:
                return s
        return None

    def get_by_profile_field(self, *, shortname, value):
        uid = self.profile.get((shortname, value))
        return self.by_id.get(uid) if uid else None

    def list_enrolled(self, *, course_id, group_id=0):
        ids = self.enrolments.get(course_id, [])
        if group_id:
            ids = [i for i in ids if i in self.groups.get(group_id, set())]
        return [self.by_id[i] for i in ids]


class InMemoryAttendance:
    def __init__(self, sessions: InMemorySessions):
        self._sessions = sessions
        self.rows: dict[tuple[int, int], AttendanceRecord] = {}
        self.write_count = 0
        self._id = 0

    def get_for_student_and_session(self, *, student_id, session_id):
        return self.rows.get((student_id, session_id))

    def upsert(self, mark: AttendanceMark):
        self.write_count += 1
        key = (mark.student_id, mark.session_id)
        existing = self.rows.get(key)
        if existing is None:
            self._id += 1
            log_id = self._id
        else:
            log_id = existing.log_id
        self.rows[key] = AttendanceRecord(
            log_id=log_id,
            student_id=mark.student_id,
            session_id=mark.session_id,
            status_id=mark.status_id,
            status_set=mark.status_set,
            remarks=mark.remarks,
            time_taken=mark.time_taken,
            taken_by=mark.taken_by,
        )

    def insert_if_absent(self, mark: AttendanceMark):
        if (mark.student_id, mark.session_id) in self.rows:
            return False
        self.upsert(mark)
        return True

    def list_for_session(self, session_id):
        return sorted((r for r in self.rows.values() if r.session_id == session_id), key=lambda r: r.student_id)

    def student_ids_for_session(self, session_id):
        return {r.student_id for r in self.rows.values() if r.session_id == session_id}

    def _student_rows(self, instance_id, student_id, since):
        for r in self.rows.values():
            sess = self._sessions.get_by_id(r.session_id)
            if r.student_id == student_id and sess and sess.instance_id == instance_id and sess.start_time >= since:
                yield r

    def status_counts(self, *, instance_id, student_id, since):
        counts: dict[int, int] = {}
        for r in self._student_rows(instance_id, student_id, since):
            counts[r.status_id] = counts.get(r.status_id, 0) + 1
        return counts

    def taken_sessions_count(self, *, instance_id, student_id, since):
        return len({r.session_id for r in self._student_rows(instance_id, student_id, since)})


class InMemoryInstances:
    def __init__(self, instances=()):
        self.by_id: dict[int, AttendanceInstance] = {i.instance_id: i for i in instances}

    def get_by_id(self, instance_id):
        return self.by_id.get(instance_id)

    def set_last_import(self, *, instance_id, text):
        self.by_id[instance_id] = replace(self.by_id[instance_id], last_import=text)


class RecordingGradebook:
    def __init__(self, *, fail: Optional[Exception] = None):
        self.pushes: list[dict] = []
        self._fail = fail

    def push(self, *, course_id, instance_id, grades):
        if self._fail is not None:
            raise self._fail
        self.pushes.append(dict(grades))


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 2, 9, 15, 0)


@pytest.fixture
def instance():
    return AttendanceInstance(
        instance_id=1,
        course_id=10,
        name="Lab attendance",
        max_grade=Decimal("100"),
        course_start=datetime(2026, 1, 1),
    )


@pytest.fixture
def statuses():
    return [
        Status(1, 1, "P", "Present", Decimal("2")),
        Status(2, 1, "L", "Late", Decimal("1")),
        Status(3, 1, "A", "Absent", Decimal("0")),
    ]


@pytest.fixture
def students():
    return [
        Student(101, "ann", "Ann", "Archer", idnumber="1001001"),
        Student(102, "bob", "Bob", "Baker", idnumber="1001002"),
        Student(103, "cid", "Cid", "Carter", idnumber="1001003"),
    ]


@pytest.fixture
def world(instance, statuses, students, fixed_now):
    """Fully wired services over in-memory stores, with one 09:00-10:00 session."""

    class World:
        pass

    w = World()
    w.instance = instance
    w.statuses_repo = InMemoryStatuses(statuses)
    w.sessions_repo = InMemorySessions(
        [Session(1, instance.instance_id, fixed_now.replace(minute=0), 3600)]
    )
    w.users_repo = InMemoryUsers(students, enrolments={instance.course_id: [s.user_id for s in students]})
    w.attendance_repo = InMemoryAttendance(w.sessions_repo)
    w.instances_repo = InMemoryInstances([instance])
    w.gradebook = RecordingGradebook()

    w.instance_service = InstanceService(w.instances_repo)
    w.catalog = StatusCatalog(w.statuses_repo)
    w.sessions = SessionService(w.sessions_repo)
    w.directory = IdentityDirectory(w.users_repo)
    w.grades = GradeAggregator(w.attendance_repo, w.catalog, w.gradebook, w.directory)
    w.log = AttendanceLog(w.attendance_repo, w.catalog, w.sessions, w.directory, grades=w.grades)
    w.importer = RecordImporter(w.catalog, w.sessions, w.directory, w.log)
    w.batch = ImportBatchService(w.importer, w.catalog, w.sessions, w.log, w.grades, w.instance_service)
    w.gateway = LiveCheckoffGateway(w.directory, w.catalog, w.sessions, w.log, w.grades)
    return w
