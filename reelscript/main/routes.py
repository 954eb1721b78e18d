from flask import current_app, jsonify

from ..services.generation_client import get_generation_client
from . import bp


@bp.route("/")
def index():
    return jsonify({"name": "reelscript", "health": "/health"})


@bp.route("/health")
def health():
    return jsonify(
        {
            "status": "ok",
            "generationClient": get_generation_client() is not None,
            "testing": bool(current_app.config.get("TESTING")),
        }
    )
