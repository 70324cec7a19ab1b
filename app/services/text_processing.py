"""
Text processing for user input: sanitizing and field validation.

Queries and chat messages are stripped of markup-significant characters before
they reach the resolver or the session store. Registration fields are checked
against simple shape rules.
"""

import re

from app.core.config import MIN_USERNAME_LENGTH

_UNSAFE_CHARS = re.compile(r"[<>\"'&]")
_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize_input(text):
    """
    Remove < > " ' & from text. Non-string values are returned unchanged.

    Only the characters are dropped; whitespace and case are preserved so the
    knowledge-base matcher and the model see the user's wording.
    """
    if not isinstance(text, str):
        return text
    return _UNSAFE_CHARS.sub("", text)


def clean_query(query: str | None) -> str:
    """Trim and sanitize a user query. Returns "" for None or whitespace-only input."""
    if not query or not str(query).strip():
        return ""
    return sanitize_input(str(query).strip()).strip()


def validate_username(username: str | None) -> bool:
    """At least MIN_USERNAME_LENGTH chars; letters, digits and underscore only."""
    if not username or len(username) < MIN_USERNAME_LENGTH:
        return False
    return bool(_USERNAME_RE.match(username))


def validate_email(email: str | None) -> bool:
    if not email:
        return False
    return bool(_EMAIL_RE.match(email))


def truncate(text: str, limit: int, suffix: str = "...") -> str:
    """Cut text to limit chars, adding suffix when something was cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + suffix
