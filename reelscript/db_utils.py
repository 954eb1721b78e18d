"""Database helper utilities for ensuring schema consistency."""
from __future__ import annotations

from typing import Iterable, Set

from flask import current_app
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db


def _get_column_names(table_name: str) -> Set[str]:
    inspector = inspect(db.engine)
    return {column["name"] for column in inspector.get_columns(table_name)}


def ensure_database_schema() -> None:
    """Ensure that essential schema updates are applied.

    The function is light-weight so it can run on every application start. It
    creates any missing tables and back-fills the columns that were added to
    ``users`` and ``generated_split_history`` after the first release.
    """

    try:
        inspector = inspect(db.engine)
        table_names: Iterable[str] = inspector.get_table_names()

        if "users" not in table_names:
            db.create_all()
            inspector = inspect(db.engine)
            table_names = inspector.get_table_names()

        # Import locally to avoid circular import issues during application setup.
        from .models import AIModel, ApiUsage, Chat, GeneratedScriptHistory, Message, PromptTemplate

        required_tables = {
            "ai_models": AIModel.__table__,
            "split_prompt_templates": PromptTemplate.__table__,
            "generated_split_history": GeneratedScriptHistory.__table__,
            "chats": Chat.__table__,
            "messages": Message.__table__,
            "api_usage": ApiUsage.__table__,
        }

        for table_name, table in required_tables.items():
            if table_name not in table_names:
                table.create(bind=db.engine)

        alter_statements = []

        user_columns = _get_column_names("users")
        if "role" not in user_columns:
            alter_statements.append("ALTER TABLE users ADD COLUMN role VARCHAR(20) NOT NULL DEFAULT 'user'")
        if "is_verified" not in user_columns:
            # SQLite has no native boolean type; an INTEGER default of 0 keeps
            # existing rows readable as False.
            alter_statements.append("ALTER TABLE users ADD COLUMN is_verified BOOLEAN NOT NULL DEFAULT 0")

        history_columns = _get_column_names("generated_split_history")
        if "used_fallback" not in history_columns:
            alter_statements.append(
                "ALTER TABLE generated_split_history ADD COLUMN used_fallback BOOLEAN NOT NULL DEFAULT 0"
            )
        if "attempt_count" not in history_columns:
            alter_statements.append(
                "ALTER TABLE generated_split_history ADD COLUMN attempt_count INTEGER NOT NULL DEFAULT 0"
            )

        for statement in alter_statements:
            with db.engine.begin() as connection:
                connection.execute(text(statement))
    except SQLAlchemyError:
        current_app.logger.exception("Failed to bring the database schema up to date")
        raise
