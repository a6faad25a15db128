from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.web import current_role, current_user_id, domain_errors, form_data, login_required
from ..core.constants import NO_CHANGE_STATUS
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _require_import(instance_id: int) -> None:
        allowed = container.access_policy.can_import(
            user_id=current_user_id(), role=current_role(), instance_id=instance_id
        )
        if not allowed:
            raise AuthorizationError("You cannot import attendance here")

    @app.route("/attendance/<int:instance_id>/import", methods=["GET"], endpoint="import_form")
    @login_required
    @domain_errors
    def import_form(instance_id: int):
        """Values used to seed the import form: the retry buffer, default time and status choices."""

        _require_import(instance_id)
        instance = container.instance_service.get(instance_id)
        default_time = container.import_batch_service.default_import_time(instance) or now_local()
        statuses = container.status_catalog.list_statuses(instance.instance_id)
        return jsonify(
            {
                "userdata": container.instance_service.get_persistent_import_text(instance),
                "defaulttime": default_time.isoformat(timespec="seconds"),
                "statuses": [
                    {"id": s.status_id, "acronym": s.acronym, "description": s.description, "grade": str(s.grade)}
                    for s in statuses
                ],
            }
        )

    @app.route("/attendance/<int:instance_id>/import", methods=["POST"], endpoint="import_submit")
    @login_required
    @domain_errors
    def import_submit(instance_id: int):
        _require_import(instance_id)
        instance = container.instance_service.get(instance_id)
        data = form_data()

        default_status = (data.get("defaultstatus_included") or "").strip()
        if not default_status:
            raise ValidationError("Default status is required")

        default_time_s = (data.get("defaulttime") or "").strip()
        if default_time_s:
            try:
                default_time = parse_iso_datetime(default_time_s)
            except ValueError:
                raise ValidationError("Default time must be an ISO date/time")
        else:
            default_time = container.import_batch_service.default_import_time(instance) or now_local()

        result = container.import_batch_service.run(
            instance,
            data.get("userdata") or "",
            default_status=default_status,
            omitted_status=data.get("defaultstatus_omitted") or NO_CHANGE_STATUS,
            default_time=default_time,
            acting_user_id=current_user_id(),
        )
        return jsonify(result.to_payload())
