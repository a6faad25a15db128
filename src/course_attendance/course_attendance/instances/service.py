from __future__ import annotations

from ..core.exceptions import NotFoundError
from .model import AttendanceInstance
from .repository import InstanceRepository


class InstanceService:
    def __init__(self, instances: InstanceRepository):
        self._instances = instances

    def get(self, instance_id: int) -> AttendanceInstance:
        instance = self._instances.get_by_id(int(instance_id))
        if not instance:
            raise NotFoundError("Attendance instance does not exist")
        return instance

    def get_persistent_import_text(self, instance: AttendanceInstance) -> str:
        return instance.last_import

    def set_persistent_import_text(self, instance: AttendanceInstance, text: str) -> None:
        self._instances.set_last_import(instance_id=instance.instance_id, text=text)
