from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from .extensions import db, login_manager


def _uuid() -> str:
    return str(uuid.uuid4())


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="user")
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    script_history = db.relationship(
        "GeneratedScriptHistory",
        backref="owner",
        lazy=True,
        cascade="all, delete-orphan",
    )
    chats = db.relationship("Chat", backref="owner", lazy=True, cascade="all, delete-orphan")

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "isVerified": self.is_verified,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - repr for debugging
        return f"<User {self.email}>"


@login_manager.user_loader
def load_user(user_id: str) -> Optional["User"]:
    return db.session.get(User, int(user_id))


class AIModel(db.Model):
    __tablename__ = "ai_models"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(64), nullable=False)
    display_name = db.Column(db.String(64), nullable=True)
    provider = db.Column(db.String(64), nullable=False, default="openai")
    capability = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    max_tokens = db.Column(db.Integer, nullable=True)
    temperature = db.Column(db.Float, nullable=True)
    custom_prompt = db.Column(db.Text, nullable=True)
    input_price = db.Column(db.Numeric(10, 4), nullable=True)
    output_price = db.Column(db.Numeric(10, 4), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "displayName": self.display_name,
            "provider": self.provider,
            "capability": self.capability,
            "isActive": self.is_active,
            "maxTokens": self.max_tokens,
            "temperature": self.temperature,
            "customPrompt": self.custom_prompt,
            "inputPrice": float(self.input_price) if self.input_price is not None else None,
            "outputPrice": float(self.output_price) if self.output_price is not None else None,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AIModel {self.name}>"


class PromptTemplate(db.Model):
    __tablename__ = "split_prompt_templates"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    variant = db.Column(db.String(50), nullable=False, index=True)
    model_id = db.Column(db.String(36), db.ForeignKey("ai_models.id", ondelete="CASCADE"), nullable=True)
    model_code_name = db.Column(db.String(128), nullable=True)
    prompt = db.Column(db.Text, nullable=False)
    user_email = db.Column(db.String(255), nullable=True)
    is_current = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "variant": self.variant,
            "modelId": self.model_id,
            "modelCodeName": self.model_code_name,
            "prompt": self.prompt,
            "userEmail": self.user_email,
            "isCurrent": self.is_current,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<PromptTemplate {self.variant} current={self.is_current}>"


class GeneratedScriptHistory(db.Model):
    __tablename__ = "generated_split_history"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    variant = db.Column(db.String(50), nullable=False)
    prompt = db.Column(db.Text, nullable=False)
    client_persona = db.Column(db.Text, nullable=True)
    content_pillar = db.Column(db.Text, nullable=True)
    sub_pillars = db.Column(db.JSON, nullable=False, default=list)
    chosen_sub_pillars = db.Column(db.JSON, nullable=False, default=list)
    hook_types = db.Column(db.JSON, nullable=False, default=list)
    scripts = db.Column(db.JSON, nullable=False, default=list)
    token_usage = db.Column(db.JSON, nullable=True)
    model_code_name = db.Column(db.String(128), nullable=True)
    used_fallback = db.Column(db.Boolean, nullable=False, default=False)
    attempt_count = db.Column(db.Integer, nullable=False, default=0)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "variant": self.variant,
            "prompt": self.prompt,
            "clientPersona": self.client_persona,
            "contentPillar": self.content_pillar,
            "subPillars": self.sub_pillars or [],
            "chosenSubPillars": self.chosen_sub_pillars or [],
            "hookType": self.hook_types or [],
            "scripts": self.scripts or [],
            "tokenUsage": self.token_usage,
            "modelCodeName": self.model_code_name,
            "usedFallback": self.used_fallback,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<GeneratedScriptHistory {self.id} ({self.variant})>"


class Chat(db.Model):
    __tablename__ = "chats"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.Text, nullable=True)
    visibility = db.Column(db.String(20), nullable=False, default="private")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True)

    messages = db.relationship(
        "Message",
        backref="chat",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "visibility": self.visibility,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Chat {self.title}>"


class Message(db.Model):
    __tablename__ = "messages"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    chat_id = db.Column(db.String(36), db.ForeignKey("chats.id"), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False)
    content = db.Column(db.Text, nullable=False)
    model = db.Column(db.String(64), nullable=True)
    prompt_tokens = db.Column(db.Integer, nullable=True)
    completion_tokens = db.Column(db.Integer, nullable=True)
    total_tokens = db.Column(db.Integer, nullable=True)
    duration = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "model": self.model,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
            "duration": self.duration,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Message {self.role} in chat {self.chat_id}>"


class ApiUsage(db.Model):
    __tablename__ = "api_usage"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    chat_id = db.Column(db.String(36), db.ForeignKey("chats.id", ondelete="CASCADE"), nullable=True)
    model = db.Column(db.String(64), nullable=False)
    type = db.Column(db.String(64), nullable=False)
    prompt_tokens = db.Column(db.Integer, nullable=False, default=0)
    completion_tokens = db.Column(db.Integer, nullable=False, default=0)
    total_tokens = db.Column(db.Integer, nullable=False, default=0)
    duration = db.Column(db.Float, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ApiUsage {self.type} {self.model} ({self.total_tokens} tokens)>"
