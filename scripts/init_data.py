#!/usr/bin/env python3
"""
Prepare the data directory for a fresh install.

Creates data/user-logs/, data/users.json with the default admin user (if
missing), and checks that the knowledge document loads. Use --reset-users to
recreate users.json with only the default admin.

Run from project root:

    python scripts/init_data.py
    python scripts/init_data.py --reset-users
"""

import argparse
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.core.config import DATA_DIR, DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME, KNOWLEDGE_FILE
from app.core.user_store import UserStore
from app.services.knowledge_base import KnowledgeStore


def main() -> None:
    parser = argparse.ArgumentParser(description="Prepare data/ for the assistant backend.")
    parser.add_argument(
        "--reset-users",
        action="store_true",
        help="Delete users.json so it is recreated with only the default admin.",
    )
    args = parser.parse_args()

    store = UserStore(DATA_DIR)
    store.logs_dir.mkdir(parents=True, exist_ok=True)
    print(f"  user logs: {store.logs_dir}")

    if args.reset_users and store.users_file.exists():
        store.users_file.unlink()
        print("Removed existing users.json.")
    users = store.load_users()
    print(f"  users: {store.users_file} ({len(users)} users)")

    knowledge = KnowledgeStore.from_file(KNOWLEDGE_FILE).snapshot()
    if knowledge:
        print(f"  knowledge: {KNOWLEDGE_FILE} (categories: {', '.join(sorted(knowledge))})")
    else:
        print(f"  knowledge: {KNOWLEDGE_FILE} is missing or empty; knowledge answers will use placeholder text.")

    print(f"Done. Default login: {DEFAULT_ADMIN_USERNAME} / {DEFAULT_ADMIN_PASSWORD}")


if __name__ == "__main__":
    main()
