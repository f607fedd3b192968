from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "ekhaya_hr"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from dotenv import load_dotenv

from config import get_settings_module

from ekhaya_hr.database.bootstrap import DEMO_USERS, apply_seed_sql, ensure_demo_users
from ekhaya_hr.database.connection import DBConfig, DatabaseConnection


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection(DBConfig.from_mapping(settings.DB_CONFIG))

    apply_seed_sql(conn, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_users(conn)

    print(f"OK: Seeded database -> {conn.config.describe()}")
    for username, _, role, _ in DEMO_USERS:
        print(f"  {role.value:<20} {username} / {username}123")


if __name__ == "__main__":
    main()
