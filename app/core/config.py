"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Project root (directory holding app/ and data/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent

# File-backed data: knowledge document, users, per-user logs
DATA_DIR: Path = Path(os.getenv("DATA_DIR", "").strip() or PROJECT_ROOT / "data")
KNOWLEDGE_FILE: Path = Path(
    os.getenv("KNOWLEDGE_FILE", "").strip() or DATA_DIR / "knowledge.json"
)
USERS_FILE_NAME: str = "users.json"
USER_LOGS_DIR_NAME: str = "user-logs"

# Fixed top-level categories of the knowledge document
KNOWLEDGE_CATEGORIES: tuple[str, ...] = (
    "company",
    "services",
    "careers",
    "contact",
    "technologies",
    "founders",
)

# Local model service (Ollama)
OLLAMA_BASE_URL: str = (
    os.getenv("OLLAMA_BASE_URL", "http://localhost:11434").strip().rstrip("/")
    or "http://localhost:11434"
)
OLLAMA_MODEL: str = os.getenv("PHI3_MODEL", "phi3:mini").strip() or "phi3:mini"

# Google Custom Search (optional). Both values are required to enable web search.
GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", "").strip()
GOOGLE_SEARCH_ENGINE_ID: str = os.getenv("GOOGLE_SEARCH_ENGINE_ID", "").strip()
GOOGLE_SEARCH_URL: str = "https://www.googleapis.com/customsearch/v1"

# API timeouts (seconds)
MODEL_TIMEOUT: float = 10.0
MODEL_STATUS_TIMEOUT: float = 5.0
SEARCH_TIMEOUT: float = 5.0

# Resolver
SEARCH_MAX_RESULTS: int = 3
MAX_CONTEXT_TURNS: int = 20

# Chat sessions
SESSION_TITLE_MAX: int = 50
LAST_MESSAGE_PREVIEW: int = 100

# Accounts. Passwords are stored as sha256(password + salt).
PASSWORD_SALT: str = os.getenv("PASSWORD_SALT", "salt_key_2024")
DEFAULT_ADMIN_USERNAME: str = "admin"
DEFAULT_ADMIN_PASSWORD: str = "admin"
DEFAULT_ADMIN_EMAIL: str = "admin@premadeinnovation.com"
MIN_USERNAME_LENGTH: int = 3
MIN_PASSWORD_LENGTH: int = 6
