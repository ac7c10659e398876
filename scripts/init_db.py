from __future__ import annotations

import argparse
import importlib
from pathlib import Path

from dotenv import load_dotenv

from config import get_settings_module
from squadops.database.bootstrap import apply_schema, apply_seed_sql, list_tables
from squadops.database.connection import DBConfig

DATABASE_DIR = Path(__file__).resolve().parents[1] / "database"


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the squadops tables and optionally load demo data.")
    parser.add_argument("--seed", action="store_true", help="also apply database/seed.sql")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = DBConfig.from_dict(db_config).target

    apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    print(f"OK: Applied schema.sql -> {target} (tables={len(list_tables(db_config))})")

    if args.seed:
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        print(f"OK: Seeded database -> {target}")


if __name__ == "__main__":
    main()
