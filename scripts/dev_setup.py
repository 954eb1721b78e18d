"""Write the local .env file, create the database and optionally promote an admin."""
from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from reelscript import create_app  # noqa: E402
from reelscript.extensions import db  # noqa: E402
from reelscript.models import User  # noqa: E402

DEFAULT_ENV_PATH = REPO_ROOT / ".env"
BACKUP_SUFFIX = ".bak"


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create or update a .env file for local development and initialize the database."
    )
    parser.add_argument("--flask-app", default="wsgi.py", help="Entry point used by Flask (default: wsgi.py)")
    parser.add_argument(
        "--secret-key",
        help="Secret key for Flask sessions. If omitted, the current value in .env is preserved.",
    )
    parser.add_argument("--openai-api-key", help="API key for the hosted generation service (optional).")
    parser.add_argument("--database-url", help="Override DATABASE_URL (optional).")
    parser.add_argument("--log-level", help="Application log level, e.g. DEBUG or INFO (optional).")
    parser.add_argument(
        "--env-path",
        type=Path,
        default=DEFAULT_ENV_PATH,
        help="Path to the .env file that should be created/updated.",
    )
    parser.add_argument(
        "--make-admin",
        metavar="EMAIL",
        help="Promote the existing account with this email to a verified admin.",
    )
    parser.add_argument(
        "--skip-db",
        action="store_true",
        help="Only update the .env file without touching the database.",
    )
    return parser.parse_args(argv)


def write_env(path: Path, values: Dict[str, str]) -> None:
    if path.exists():
        backup_path = path.with_suffix(path.suffix + BACKUP_SUFFIX)
        shutil.copy(path, backup_path)
        print(f"Existing {path.name} backed up to {backup_path.name}.")
    lines = [f"{key}={value}" for key, value in values.items()]
    path.write_text("\n".join(lines) + "\n")
    print(f"Updated environment variables written to {path}.")


def update_env_file(args: argparse.Namespace) -> Dict[str, str]:
    env_data = {key: value or "" for key, value in dotenv_values(args.env_path).items()}
    env_updates = {
        "FLASK_APP": args.flask_app,
        "SECRET_KEY": args.secret_key,
        "OPENAI_API_KEY": args.openai_api_key,
        "DATABASE_URL": args.database_url,
        "LOG_LEVEL": args.log_level,
    }
    env_data.update({key: value for key, value in env_updates.items() if value})
    write_env(args.env_path, env_data)
    return env_data


def initialize_database(admin_email: Optional[str] = None) -> None:
    app = create_app(generation_client=None)
    with app.app_context():
        db.create_all()
        print(f"Database initialized ({app.config['SQLALCHEMY_DATABASE_URI']}).")

        if admin_email:
            user = User.query.filter_by(email=admin_email.strip().lower()).first()
            if user is None:
                print(f"No account found for {admin_email}; register it first.")
                return
            user.role = "admin"
            user.is_verified = True
            db.session.commit()
            print(f"{user.email} is now a verified admin.")


def main() -> None:
    args = parse_args()
    env_values = update_env_file(args)

    if not args.skip_db:
        initialize_database(args.make_admin)
    else:
        print("Database initialization skipped.")

    print("\nSetup complete! Summary:")
    for key in sorted(env_values):
        value = env_values[key]
        if key in {"SECRET_KEY", "OPENAI_API_KEY"} and value:
            value = value[:4] + "…"
        print(f"  {key}={value}")


if __name__ == "__main__":
    main()
