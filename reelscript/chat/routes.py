from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from ..auth.decorators import verified_required
from ..extensions import db
from ..models import AIModel
from ..services.chat import chat_transcript, delete_chat, get_chat, list_chats, send_chat_message
from ..services.errors import ReelScriptError
from ..services.generation_client import GenerationServiceError, get_generation_client
from . import bp


@bp.route("/api/chat", methods=["POST"])
@login_required
@verified_required
def send_message():
    payload = request.get_json(silent=True) or {}

    try:
        reply = send_chat_message(
            db.session,
            user_id=current_user.id,
            chat_id=payload.get("id"),
            messages=payload.get("messages") or [],
            model_id=payload.get("selectedModelId") or "",
            client=get_generation_client(),
        )
    except ReelScriptError:
        raise
    except GenerationServiceError as exc:
        current_app.logger.warning("Chat generation failed: %s", exc)
        return jsonify({"error": str(exc)}), 500
    except Exception:  # pragma: no cover
        current_app.logger.exception("Unexpected error while processing chat message")
        return jsonify({"error": "An error occurred while processing your request"}), 500

    return jsonify(reply.to_dict())


@bp.route("/api/models", methods=["GET"])
@login_required
def available_models():
    models = AIModel.query.filter_by(is_active=True).order_by(AIModel.display_name).all()
    return jsonify({"models": [model.to_dict() for model in models]})


@bp.route("/api/chats", methods=["GET"])
@login_required
def chat_index():
    return jsonify({"chats": [chat.to_dict() for chat in list_chats(db.session, current_user.id)]})


@bp.route("/api/chats/<chat_id>", methods=["GET"])
@login_required
def chat_detail(chat_id: str):
    chat = get_chat(db.session, current_user.id, chat_id)
    return jsonify(chat_transcript(chat))


@bp.route("/api/chats/<chat_id>", methods=["DELETE"])
@login_required
def chat_delete(chat_id: str):
    delete_chat(db.session, current_user.id, chat_id)
    return jsonify({"success": True})
