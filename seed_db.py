"""Create the schema, an admin account and a small demo catalog.

Usage: python seed_db.py   (honours THOLVI_DATA_DIR, THOLVI_ADMIN_EMAIL,
THOLVI_ADMIN_PASSWORD)
"""

import os
from pathlib import Path

from tholvi.adapters.clock import SystemClock
from tholvi.adapters.sqlite.migrator import SQLiteMigrator
from tholvi.adapters.sqlite.repos import SQLiteContentRepo, SQLiteUserRepo
from tholvi.api.auth_utils import get_password_hash
from tholvi.components.catalog import SaveItemInput, run_save_item
from tholvi.components.sections import AddSectionInput, run_add_section
from tholvi.domain.entities import UserAccount

DEMO_CATALOG = [
    (
        "course",
        {
            "title": "Trading Basics",
            "description": "Candles, timeframes and order types.",
            "tier_required": "free",
            "published": True,
        },
        ["What is a candle", "Market vs limit orders"],
    ),
    (
        "course",
        {
            "title": "Price Action Mastery",
            "description": "Support, resistance and clean entries.",
            "tier_required": "tier1",
            "published": True,
        },
        ["Support and resistance", "Break and retest", "Risk per trade"],
    ),
    (
        "tool",
        {
            "title": "Position Size Calculator",
            "description": "Spreadsheet walkthrough for sizing trades.",
            "tier_required": "tier2",
            "published": True,
        },
        ["Setup", "Worked example"],
    ),
    (
        "blog",
        {
            "title": "Why most traders blow their first account",
            "preview": "Leverage is not a strategy.",
            "content": "Full article body.",
            "author": "Tholvi Team",
            "read_time": 5,
            "tier_required": "free",
            "published": True,
        },
        [],
    ),
]


def seed() -> None:
    data_dir = Path(os.environ.get("THOLVI_DATA_DIR", "./data"))
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = str(data_dir / "tholvi.db")
    print(f"Seeding to {db_path}")

    applied = SQLiteMigrator(db_path, "migrations").run_migrations()
    if applied:
        print(f"Applied migrations: {', '.join(applied)}")

    clock = SystemClock()
    users = SQLiteUserRepo(db_path)
    email = os.environ.get("THOLVI_ADMIN_EMAIL", "admin@example.com").lower()
    password = os.environ.get("THOLVI_ADMIN_PASSWORD", "changeme")

    admin = users.get_by_email(email)
    if admin is None:
        now = clock.now_utc()
        admin = users.save(
            UserAccount(
                email=email,
                display_name="Admin",
                password_hash=get_password_hash(password),
                role="admin",
                created_at=now,
                updated_at=now,
            )
        )
        print(f"Created admin: {email} / {password}")
    else:
        print(f"User {email} already exists")

    content = SQLiteContentRepo(db_path)
    for kind, fields, section_titles in DEMO_CATALOG:
        if any(i.title == fields["title"] for i in content.list_items(kind)):
            continue
        result = run_save_item(
            SaveItemInput(actor=admin, kind=kind, fields=fields), store=content, time=clock
        )
        if not result.success or result.item is None:
            print(f"Skipped {fields['title']}: {[e.message for e in result.errors]}")
            continue
        for title in section_titles:
            run_add_section(
                AddSectionInput(
                    actor=admin, parent_kind=kind, parent_id=result.item.id, title=title
                ),
                store=content,
                time=clock,
            )
        print(f"Created {kind}: {fields['title']} ({len(section_titles)} sections)")


if __name__ == "__main__":
    seed()
