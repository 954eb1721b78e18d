from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from ..auth.decorators import verified_required
from ..extensions import db
from ..services.errors import ReelScriptError
from ..services.generation_client import get_generation_client
from ..services.generation_requests import PromptRequest, ScriptRequest
from ..services.history import get_history_entry, list_history, soft_delete_history
from ..services.script_generation import (
    generate_automatic_scripts,
    generate_scripts,
    generate_sub_pillars,
)
from . import bp


@bp.route("/api/generate-scripts", methods=["POST"])
@login_required
@verified_required
def generate_scripts_view():
    payload = request.get_json(silent=True) or {}
    script_request = ScriptRequest.from_json(payload)

    try:
        result = generate_scripts(
            script_request,
            user_id=current_user.id,
            client=get_generation_client(),
            session=db.session,
        )
    except ReelScriptError:
        raise
    except Exception:  # pragma: no cover - unexpected failures are logged and hidden from the client
        current_app.logger.exception("Unexpected error while generating scripts")
        return jsonify({"error": "Failed to generate scripts"}), 500

    return jsonify(result.to_response())


@bp.route("/api/generate-automatic-scripts", methods=["POST"])
@login_required
@verified_required
def generate_automatic_scripts_view():
    payload = request.get_json(silent=True) or {}
    prompt_request = PromptRequest.from_json(payload)

    try:
        result = generate_automatic_scripts(
            prompt_request,
            user_id=current_user.id,
            client=get_generation_client(),
            session=db.session,
        )
    except ReelScriptError:
        raise
    except Exception:  # pragma: no cover
        current_app.logger.exception("Unexpected error while generating automatic scripts")
        return jsonify({"error": "Failed to generate scripts"}), 500

    return jsonify(result.to_response())


@bp.route("/api/generate-sub-pillars", methods=["POST"])
@login_required
@verified_required
def generate_sub_pillars_view():
    payload = request.get_json(silent=True) or {}
    prompt_request = PromptRequest.from_json(payload)

    try:
        result = generate_sub_pillars(
            prompt_request,
            client=get_generation_client(),
            session=db.session,
        )
    except ReelScriptError:
        raise
    except Exception:  # pragma: no cover
        current_app.logger.exception("Unexpected error while generating sub-pillars")
        return jsonify({"error": "Failed to generate sub-pillars"}), 500

    return jsonify(result.to_response())


@bp.route("/api/history", methods=["GET"])
@login_required
def history_index():
    limit = request.args.get("limit", default=50, type=int)
    entries = list_history(db.session, current_user.id, limit=max(1, min(limit, 200)))
    return jsonify({"history": [entry.to_dict() for entry in entries]})


@bp.route("/api/history/<history_id>", methods=["GET"])
@login_required
def history_detail(history_id: str):
    entry = get_history_entry(db.session, current_user.id, history_id)
    return jsonify(entry.to_dict())


@bp.route("/api/history/<history_id>", methods=["DELETE"])
@login_required
def history_delete(history_id: str):
    soft_delete_history(db.session, current_user.id, history_id)
    return jsonify({"success": True})
