from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_role, current_user_id, domain_errors, form_data, login_required
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container
from .service import LiveCheckoffRequest


def register(app: Flask, container: Container) -> None:
    def require_taker(instance_id: int) -> None:
        allowed = container.access_policy.can_take(
            user_id=current_user_id(), role=current_role(), instance_id=instance_id
        )
        if not allowed:
            raise AuthorizationError("You cannot take attendance here")

    @app.route("/attendance/<int:instance_id>/livetake/sessions", methods=["GET"], endpoint="livetake_sessions")
    @login_required
    @domain_errors
    def livetake_sessions(instance_id: int):
        """Sessions a scanner can be pointed at right now."""

        require_taker(instance_id)
        instance = container.instance_service.get(instance_id)
        sessions = container.session_service.list_live_sessions(instance.instance_id)
        return jsonify(
            {
                "sessions": [
                    {
                        "id": s.session_id,
                        "start": s.start_time.isoformat(),
                        "duration": s.duration,
                        "group_id": s.group_id,
                        "description": s.description,
                    }
                    for s in sessions
                ]
            }
        )

    @app.route("/attendance/<int:instance_id>/livetake", methods=["POST"], endpoint="livetake")
    @login_required
    @domain_errors
    def livetake(instance_id: int):
        """Check off one scanned student. Both outcomes answer 200 with a typed payload."""

        require_taker(instance_id)

        instance = container.instance_service.get(instance_id)
        data = form_data()
        try:
            session_id = int(data.get("session") or 0)
        except (TypeError, ValueError):
            raise ValidationError("Session must be a number")

        result = container.livetake_gateway.check_off(
            instance,
            LiveCheckoffRequest(
                mode=str(data.get("mode") or "").strip(),
                raw_value=str(data.get("user") or "").strip(),
                session_id=session_id,
            ),
            acting_user_id=current_user_id(),
        )
        return jsonify(result.to_payload())
