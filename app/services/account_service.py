"""
Accounts: registration, login, and the admin views over users and their logs.

Responsibility: validate account input, talk to the UserStore, hand out session
tokens. Called by the API layer; no HTTP or FastAPI here.
"""

import logging
import secrets
import threading
from datetime import datetime, timezone
from typing import Any

from app.core.config import MIN_PASSWORD_LENGTH
from app.core.errors import InvalidCredentialsError, RegistrationError
from app.core.user_store import UserStore, generate_user_id, hash_password
from app.services.text_processing import sanitize_input, validate_email, validate_username

logger = logging.getLogger(__name__)

_PUBLIC_FIELDS = ("id", "username", "name", "email", "role")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {k: user.get(k) for k in _PUBLIC_FIELDS}


class AccountService:
    def __init__(self, store: UserStore) -> None:
        self.store = store
        # session token -> {user_id, username, role, login_time}
        self._active: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def register(self, name: str, username: str, email: str, password: str) -> dict[str, Any]:
        """
        Create a user with role "user" and an empty log file.

        Raises:
            RegistrationError: Missing fields, bad username/email/password shape,
                or a username or email that is already taken.
        """
        if not name or not username or not email or not password:
            raise RegistrationError("All fields are required")
        if not validate_username(username):
            raise RegistrationError(
                "Username must be at least 3 characters and contain only letters, numbers, and underscores"
            )
        if not validate_email(email):
            raise RegistrationError("Invalid email format")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise RegistrationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        email = sanitize_input(email)
        with self._lock:
            users = self.store.load_users()
            if any(u.get("username") == username or u.get("email") == email for u in users):
                raise RegistrationError("Username or email already exists")
            user = {
                "id": generate_user_id(),
                "username": sanitize_input(username),
                "password": hash_password(password),
                "name": sanitize_input(name),
                "email": email,
                "role": "user",
                "registered_at": _now(),
            }
            self.store.add_user(user)
        self.store.create_user_log(username)
        logger.info("[accounts:register] new user username=%s", username)
        return public_user(user)

    def login(self, username: str, password: str) -> tuple[dict[str, Any], str]:
        """
        Check credentials and open a session. Returns (public user, session token).

        Raises:
            InvalidCredentialsError: Unknown username or wrong password.
        """
        if not username or not password:
            raise InvalidCredentialsError("Username and password are required")
        user = self.store.find_user(username)
        if user is None or user.get("password") != hash_password(password):
            logger.info("[accounts:login] rejected username=%s", username)
            raise InvalidCredentialsError("Invalid username or password")
        token = secrets.token_hex(32)
        with self._lock:
            self._active[token] = {
                "user_id": user.get("id"),
                "username": user.get("username"),
                "role": user.get("role"),
                "login_time": _now(),
            }
        logger.info("[accounts:login] user logged in username=%s", username)
        return public_user(user), token

    def session_for(self, token: str) -> dict[str, Any] | None:
        with self._lock:
            info = self._active.get(token)
            return dict(info) if info else None

    def list_users_with_stats(self) -> list[dict[str, Any]]:
        """Non-admin users with the statistics block of their log."""
        out = []
        for user in self.store.load_users():
            if user.get("role") == "admin":
                continue
            log = self.store.load_user_log(user.get("username", ""))
            stats = (log or {}).get("statistics") or {
                "total_questions": 0,
                "total_sessions": 0,
                "last_activity": None,
            }
            out.append({
                "id": user.get("id"),
                "username": user.get("username"),
                "name": user.get("name"),
                "email": user.get("email"),
                "registered_at": user.get("registered_at"),
                "statistics": stats,
            })
        return out

    def user_insights(self, username: str) -> dict[str, Any] | None:
        """
        Summarize a user's log: question count, distinct questions, the most
        frequent ones, first and last interaction. None when the user has no log.
        """
        log = self.store.load_user_log(username)
        if log is None:
            return None
        conversations = log.get("conversations") or []
        counts: dict[str, int] = {}
        for entry in conversations:
            q = (entry.get("question") or "").strip()
            if q:
                counts[q] = counts.get(q, 0) + 1
        most_asked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:5]
        stats = log.get("statistics") or {}
        return {
            "total_questions": stats.get("total_questions", 0),
            "unique_questions": len(counts),
            "most_asked_questions": [{"question": q, "count": c} for q, c in most_asked],
            "first_interaction": log.get("created_at"),
            "last_interaction": stats.get("last_activity"),
        }
