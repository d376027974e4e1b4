from __future__ import annotations

import json
import os
import sqlite3
from datetime import datetime
from pathlib import Path

from models import Config, Template

TEMPLATES_KEY = "stundenrapport.templates"


def _get_db_path() -> Path:
    """Get database path from environment variable or default location."""
    if env_path := os.environ.get("STUNDENRAPPORT_DB"):
        return Path(env_path)
    return Path(__file__).parent / "data" / "stundenrapport.db"


DB_PATH = _get_db_path()


def get_connection() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Create tables if they don't exist."""
    conn = get_connection()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
    """)
    conn.commit()
    conn.close()


def get_value(key: str) -> str | None:
    """Get a raw value from the key/value store."""
    conn = get_connection()
    row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else None


def set_value(key: str, value: str) -> None:
    conn = get_connection()
    conn.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))
    conn.commit()
    conn.close()


# --- Template Functions ---


def get_templates() -> list[Template]:
    """Get all saved templates in stored order."""
    raw = get_value(TEMPLATES_KEY)
    if not raw:
        return []
    return [Template.from_dict(item) for item in json.loads(raw)]


def _store_templates(templates: list[Template]) -> None:
    set_value(TEMPLATES_KEY, json.dumps([t.to_dict() for t in templates]))


def get_template(name: str) -> Template | None:
    """Get a single template by name."""
    return next((t for t in get_templates() if t.name == name), None)


def save_template(template: Template) -> Template:
    """Insert or replace a template by name. Returns the stored template."""
    if template.saved_at is None:
        template = Template(
            name=template.name,
            personal_info=template.personal_info,
            saved_at=datetime.now(),
        )
    templates = get_templates()
    for i, existing in enumerate(templates):
        if existing.name == template.name:
            templates[i] = template
            break
    else:
        templates.append(template)
    _store_templates(templates)
    return template


def delete_template(name: str) -> bool:
    """Delete a template. Returns False if no template has that name."""
    templates = get_templates()
    remaining = [t for t in templates if t.name != name]
    if len(remaining) == len(templates):
        return False
    _store_templates(remaining)
    return True


# --- Config Functions ---


def get_config() -> Config:
    """Load config from database."""
    conn = get_connection()
    rows = conn.execute("SELECT key, value FROM config").fetchall()
    conn.close()

    config = Config()
    for row in rows:
        if row["key"] == "template_pdf":
            config.template_pdf = row["value"]
        elif row["key"] == "output_dir":
            config.output_dir = row["value"]
        elif row["key"] == "holiday_country":
            config.holiday_country = row["value"]

    return config


def save_config(config: Config):
    """Save config to database."""
    conn = get_connection()
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("template_pdf", config.template_pdf))
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("output_dir", config.output_dir))
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("holiday_country", config.holiday_country))
    conn.commit()
    conn.close()
