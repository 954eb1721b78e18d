from flask import Blueprint

bp = Blueprint("split", __name__, url_prefix="/split")

from . import routes  # noqa: E402,F401
