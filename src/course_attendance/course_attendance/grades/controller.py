from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_role, current_user_id, domain_errors, login_required
from ..core.exceptions import AuthorizationError, GradebookPushFailed
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route(
        "/attendance/<int:instance_id>/grades/recalculate",
        methods=["POST"],
        endpoint="grades_recalculate",
    )
    @login_required
    @domain_errors
    def grades_recalculate(instance_id: int):
        allowed = container.access_policy.can_take(
            user_id=current_user_id(), role=current_role(), instance_id=instance_id
        )
        if not allowed:
            raise AuthorizationError("You cannot update grades here")

        instance = container.instance_service.get(instance_id)
        try:
            grades = container.grade_aggregator.update_all_grades(instance)
        except GradebookPushFailed as e:
            return jsonify({"success": False, "message": str(e)}), 502

        return jsonify({"success": True, "grades": {str(uid): str(g) for uid, g in grades.items()}})
