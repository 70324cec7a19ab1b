"""
File-backed user store: data/users.json plus one log file per user under
data/user-logs/<username>.json.

users.json is a JSON list of {id, username, password, name, email, role,
registered_at}. It is created with a default administrator on first load.
"""

import hashlib
import json
import logging
import secrets
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.config import (
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_USERNAME,
    PASSWORD_SALT,
    USER_LOGS_DIR_NAME,
    USERS_FILE_NAME,
)
from app.core.errors import UserDataError
from app.services.text_processing import validate_username

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_user_id() -> str:
    return f"user_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


def hash_password(password: str, salt: str = PASSWORD_SALT) -> str:
    return hashlib.sha256((password + salt).encode("utf-8")).hexdigest()


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
    tmp.replace(path)


class UserStore:
    """Users and per-user logs under data_dir. Read-modify-write calls hold a lock."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self.users_file = self.data_dir / USERS_FILE_NAME
        self.logs_dir = self.data_dir / USER_LOGS_DIR_NAME
        self._lock = threading.RLock()

    # --- users ---

    def load_users(self) -> list[dict[str, Any]]:
        """
        Return all users. Creates users.json with the default admin when missing.

        Raises:
            UserDataError: If users.json exists but does not hold a JSON list.
        """
        with self._lock:
            if not self.users_file.is_file():
                admin = {
                    "id": generate_user_id(),
                    "username": DEFAULT_ADMIN_USERNAME,
                    "password": hash_password(DEFAULT_ADMIN_PASSWORD),
                    "name": "Administrator",
                    "email": DEFAULT_ADMIN_EMAIL,
                    "role": "admin",
                    "registered_at": _now(),
                }
                self.save_users([admin])
                logger.info("[user_store] created %s with default admin user", self.users_file)
                return [admin]
            try:
                users = json.loads(self.users_file.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                logger.error("[user_store] %s is not valid JSON: %s", self.users_file, e)
                raise UserDataError(f"{self.users_file} is not valid JSON") from e
        if not isinstance(users, list):
            logger.error("[user_store] %s does not hold a list of users", self.users_file)
            raise UserDataError(f"{self.users_file} does not hold a list of users")
        return users

    def save_users(self, users: list[dict[str, Any]]) -> None:
        with self._lock:
            _write_json(self.users_file, users)

    def find_user(self, username: str) -> dict[str, Any] | None:
        for user in self.load_users():
            if user.get("username") == username:
                return user
        return None

    def add_user(self, user: dict[str, Any]) -> None:
        with self._lock:
            users = self.load_users()
            users.append(user)
            self.save_users(users)
        logger.info("[user_store] added user username=%s", user.get("username"))

    # --- user logs ---

    def _log_path(self, username: str) -> Path | None:
        if not validate_username(username):
            return None
        return self.logs_dir / f"{username}.json"

    def create_user_log(self, username: str) -> None:
        path = self._log_path(username)
        if path is None:
            return
        now = _now()
        log = {
            "username": username,
            "created_at": now,
            "conversations": [],
            "settings": {"voice_enabled": True, "theme": "light"},
            "statistics": {
                "total_questions": 0,
                "total_sessions": 0,
                "last_activity": now,
            },
        }
        with self._lock:
            _write_json(path, log)
        logger.info("[user_store] created user log for %s", username)

    def load_user_log(self, username: str) -> dict[str, Any] | None:
        path = self._log_path(username)
        if path is None or not path.is_file():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("[user_store] failed to read log for %s: %s", username, e)
            return None

    def _update_log(self, username: str, mutate) -> bool:
        """Apply mutate(log) and save. Returns False when the user has no log."""
        with self._lock:
            log = self.load_user_log(username)
            if log is None:
                return False
            mutate(log)
            log.setdefault("statistics", {})["last_activity"] = _now()
            _write_json(self._log_path(username), log)
        return True

    def record_activity(self, username: str, is_question: bool = False) -> bool:
        def mutate(log: dict) -> None:
            stats = log.setdefault("statistics", {})
            if is_question:
                stats["total_questions"] = stats.get("total_questions", 0) + 1

        return self._update_log(username, mutate)

    def record_session(self, username: str) -> bool:
        def mutate(log: dict) -> None:
            stats = log.setdefault("statistics", {})
            stats["total_sessions"] = stats.get("total_sessions", 0) + 1

        return self._update_log(username, mutate)

    def append_conversation(self, username: str, entry: dict[str, Any]) -> bool:
        return self._update_log(username, lambda log: log.setdefault("conversations", []).append(entry))
