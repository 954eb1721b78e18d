from flask import current_app, jsonify, request
from flask_login import current_user, login_required
from werkzeug.datastructures import MultiDict

from ..auth.decorators import admin_required
from ..extensions import db
from ..models import AIModel, PromptTemplate, User
from ..services.errors import InputValidationError, NotFoundError
from ..services.payloads import AUTOMATIC_SCRIPTS_SHAPE, SCRIPT_SET_SHAPE, SUB_PILLARS_SHAPE
from ..services.prompt_config import missing_keys
from ..services.script_generation import AUTOMATIC_SCRIPTS, SCRIPTS, SUB_PILLARS
from ..services.schema import required_keys
from . import bp
from .forms import AIModelForm, AIModelUpdateForm, PromptTemplateForm

_VARIANT_SHAPES = {
    SCRIPTS: SCRIPT_SET_SHAPE,
    AUTOMATIC_SCRIPTS: AUTOMATIC_SCRIPTS_SHAPE,
    SUB_PILLARS: SUB_PILLARS_SHAPE,
}

_MODEL_FIELDS = {
    "name": "name",
    "displayName": "display_name",
    "provider": "provider",
    "capability": "capability",
    "isActive": "is_active",
    "maxTokens": "max_tokens",
    "temperature": "temperature",
    "customPrompt": "custom_prompt",
    "inputPrice": "input_price",
    "outputPrice": "output_price",
}

_REQUIRED_MODEL_ATTRIBUTES = ("name", "provider", "is_active")


@bp.route("/api/users", methods=["GET"])
@login_required
@admin_required
def list_users():
    users = User.query.order_by(User.created_at.desc()).all()
    return jsonify({"users": [user.to_dict() for user in users]})


@bp.route("/api/users", methods=["PATCH"])
@login_required
@admin_required
def update_user():
    payload = request.get_json(silent=True) or {}
    user_id = payload.get("userId")
    is_verified = payload.get("isVerified")
    if user_id is None or not isinstance(is_verified, bool):
        raise InputValidationError("Invalid request data", details=["userId and a boolean isVerified are required"])

    try:
        user = db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        user = None
    if user is None:
        raise NotFoundError("User not found")

    role = payload.get("role")
    if role is not None:
        if role not in {"user", "admin"}:
            raise InputValidationError("Invalid request data", details=["role must be 'user' or 'admin'"])
        user.role = role

    user.is_verified = is_verified
    db.session.commit()
    current_app.logger.info("Admin %s set verification of user %s to %s", current_user.id, user.id, is_verified)
    return jsonify({"success": True, "user": user.to_dict()})


@bp.route("/api/ai-models", methods=["GET"])
@login_required
@admin_required
def list_ai_models():
    models = AIModel.query.order_by(AIModel.created_at.desc()).all()
    return jsonify({"models": [model.to_dict() for model in models]})


@bp.route("/api/ai-models", methods=["POST"])
@login_required
@admin_required
def create_ai_model():
    form = AIModelForm()
    if not form.validate_on_submit():
        raise InputValidationError("Invalid model data", details=form.error_details())

    model = AIModel(
        name=form.name.data.strip(),
        display_name=(form.display_name.data or "").strip() or None,
        provider=(form.provider.data or "").strip() or "openai",
        capability=form.capability.data or None,
        is_active=form.is_active.data if "is_active" in (request.get_json(silent=True) or {}) else True,
        max_tokens=form.max_tokens.data,
        temperature=form.temperature.data,
        custom_prompt=form.custom_prompt.data or None,
        input_price=form.input_price.data,
        output_price=form.output_price.data,
    )
    db.session.add(model)
    db.session.commit()
    return jsonify(model.to_dict()), 201


@bp.route("/api/ai-models/<model_id>", methods=["PATCH"])
@login_required
@admin_required
def update_ai_model(model_id: str):
    model = db.session.get(AIModel, model_id)
    if model is None:
        raise NotFoundError("Model not found")

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    problems = [f"Unknown field: {key}" for key in sorted(set(payload) - set(_MODEL_FIELDS))]

    submitted = {attribute: payload[key] for key, attribute in _MODEL_FIELDS.items() if key in payload}
    for attribute, value in list(submitted.items()):
        if isinstance(value, (list, dict)):
            problems.append(f"{attribute}: Must be a single value.")
            del submitted[attribute]
    if "is_active" in submitted and not isinstance(submitted["is_active"], bool):
        problems.append("is_active: Must be true or false.")
    for attribute in _REQUIRED_MODEL_ATTRIBUTES:
        if attribute in submitted and submitted[attribute] in (None, ""):
            problems.append(f"{attribute}: This field cannot be cleared.")

    form = AIModelUpdateForm(
        formdata=MultiDict({attribute: value for attribute, value in submitted.items() if value is not None})
    )
    if not form.validate():
        problems.extend(form.error_details())
    if problems:
        raise InputValidationError("Invalid model data", details=problems)

    for attribute, value in submitted.items():
        data = None if value is None else getattr(form, attribute).data
        setattr(model, attribute, None if data == "" else data)
    db.session.commit()
    return jsonify(model.to_dict())


@bp.route("/api/prompt-templates", methods=["GET"])
@login_required
@admin_required
def list_prompt_templates():
    query = PromptTemplate.query
    variant = request.args.get("variant")
    if variant:
        query = query.filter_by(variant=variant)
    templates = query.order_by(PromptTemplate.updated_at.desc()).all()
    return jsonify({"templates": [template.to_dict() for template in templates]})


@bp.route("/api/prompt-templates", methods=["POST"])
@login_required
@admin_required
def create_prompt_template():
    form = PromptTemplateForm()
    if not form.validate_on_submit():
        raise InputValidationError("Invalid prompt template", details=form.error_details())

    model_id = (form.model_id.data or "").strip() or None
    model_code_name = (form.model_code_name.data or "").strip() or None
    if model_id:
        model = db.session.get(AIModel, model_id)
        if model is None:
            raise NotFoundError("Model not found")
        model_code_name = model_code_name or model.name

    template = PromptTemplate(
        variant=form.variant.data,
        prompt=form.prompt.data.strip(),
        model_id=model_id,
        model_code_name=model_code_name,
        user_email=current_user.email,
    )
    db.session.add(template)
    db.session.flush()
    if form.is_current.data:
        _make_current(template)
    db.session.commit()
    return jsonify(_template_response(template)), 201


@bp.route("/api/prompt-templates/<template_id>/activate", methods=["POST"])
@login_required
@admin_required
def activate_prompt_template(template_id: str):
    template = db.session.get(PromptTemplate, template_id)
    if template is None:
        raise NotFoundError("Prompt template not found")

    _make_current(template)
    db.session.commit()
    current_app.logger.info("Prompt template %s is now current for %s", template.id, template.variant)
    return jsonify(_template_response(template))


def _make_current(template: PromptTemplate) -> None:
    PromptTemplate.query.filter(
        PromptTemplate.variant == template.variant,
        PromptTemplate.id != template.id,
    ).update({"is_current": False}, synchronize_session=False)
    template.is_current = True


def _template_response(template: PromptTemplate) -> dict:
    data = template.to_dict()
    shape = _VARIANT_SHAPES.get(template.variant)
    data["missingKeys"] = missing_keys(template.prompt, required_keys(shape)) if shape else []
    return data
