"""Database maintenance: ``init`` (schema), ``seed`` (demo data), ``backup`` (mysqldump).

Usage: python scripts/manage_db.py {init|seed|backup}
"""

from __future__ import annotations

import argparse
import importlib
import logging
import subprocess
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.boarding_management.boarding_management.database.bootstrap import (
    apply_schema,
    apply_seed_sql,
    ensure_demo_users,
    list_tables,
)

logger = logging.getLogger("manage_db")


def _target(db_config: dict) -> str:
    return f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"


def init(db_config: dict) -> None:
    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    logger.info("schema applied -> %s (tables=%d)", _target(db_config), len(list_tables(db_config)))


def seed(db_config: dict) -> None:
    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_users(db_config)
    logger.info("demo data seeded -> %s", _target(db_config))


def backup(db_config: dict) -> None:
    out_dir = REPO_ROOT / "backups"
    out_dir.mkdir(parents=True, exist_ok=True)
    out_file = out_dir / f"{db_config['database']}_{datetime.now():%Y%m%d_%H%M%S}.sql"

    cmd = [
        "mysqldump",
        f"-h{db_config['host']}",
        f"-P{db_config.get('port', 3306)}",
        f"-u{db_config['user']}",
        f"-p{db_config['password']}",
        "--default-character-set=utf8mb4",
        db_config["database"],
    ]
    try:
        with out_file.open("wb") as f:
            subprocess.run(cmd, stdout=f, stderr=subprocess.PIPE, check=True)
    except FileNotFoundError:
        raise SystemExit("Không tìm thấy `mysqldump`. Hãy cài MySQL client tools hoặc backup bằng Workbench.")
    logger.info("backup created: %s", out_file)


COMMANDS = {"init": init, "seed": seed, "backup": backup}


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Quản trị CSDL nội trú")
    parser.add_argument("command", choices=sorted(COMMANDS))
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    COMMANDS[args.command](dict(settings.DB_CONFIG))


if __name__ == "__main__":
    main()
