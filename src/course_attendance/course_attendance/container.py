from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .access.policy import AccessPolicy, RoleAccessPolicy
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceLog
from .database.connection import DBConfig, DatabaseConnection
from .grades.gradebook import MySQLGradebookSink
from .grades.service import GradeAggregator
from .importer.batch import ImportBatchService
from .importer.service import RecordImporter
from .instances.mysql_instance_repository import MySQLInstanceRepository
from .instances.service import InstanceService
from .livetake.service import LiveCheckoffGateway
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.service import SessionService
from .statuses.mysql_status_repository import MySQLStatusRepository
from .statuses.service import StatusCatalog
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import IdentityDirectory


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    instances_repo: MySQLInstanceRepository
    statuses_repo: MySQLStatusRepository
    sessions_repo: MySQLSessionRepository
    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    gradebook: MySQLGradebookSink

    access_policy: AccessPolicy
    instance_service: InstanceService
    status_catalog: StatusCatalog
    session_service: SessionService
    identity_directory: IdentityDirectory
    grade_aggregator: GradeAggregator
    attendance_log: AttendanceLog
    record_importer: RecordImporter
    import_batch_service: ImportBatchService
    livetake_gateway: LiveCheckoffGateway


def build_container(
    *,
    db_config: dict,
    use_idnumbers: bool = True,
    idnumber_fields: Sequence[str] = (),
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    instances_repo = MySQLInstanceRepository(conn)
    statuses_repo = MySQLStatusRepository(conn)
    sessions_repo = MySQLSessionRepository(conn)
    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    gradebook = MySQLGradebookSink(conn)

    instance_service = InstanceService(instances_repo)
    status_catalog = StatusCatalog(statuses_repo)
    session_service = SessionService(sessions_repo)
    identity_directory = IdentityDirectory(
        users_repo, use_idnumbers=use_idnumbers, idnumber_fields=idnumber_fields
    )
    grade_aggregator = GradeAggregator(attendance_repo, status_catalog, gradebook, identity_directory)
    attendance_log = AttendanceLog(
        attendance_repo, status_catalog, session_service, identity_directory, grades=grade_aggregator
    )
    record_importer = RecordImporter(status_catalog, session_service, identity_directory, attendance_log)
    import_batch_service = ImportBatchService(
        record_importer, status_catalog, session_service, attendance_log, grade_aggregator, instance_service
    )
    livetake_gateway = LiveCheckoffGateway(
        identity_directory, status_catalog, session_service, attendance_log, grade_aggregator
    )

    return Container(
        conn=conn,
        instances_repo=instances_repo,
        statuses_repo=statuses_repo,
        sessions_repo=sessions_repo,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        gradebook=gradebook,
        access_policy=RoleAccessPolicy(),
        instance_service=instance_service,
        status_catalog=status_catalog,
        session_service=session_service,
        identity_directory=identity_directory,
        grade_aggregator=grade_aggregator,
        attendance_log=attendance_log,
        record_importer=record_importer,
        import_batch_service=import_batch_service,
        livetake_gateway=livetake_gateway,
    )
