#!/usr/bin/env python3
"""
Liste les tables attendues par les vues analytiques et signale celles qui manquent.
À exécuter depuis la racine du projet : `python3 scripts/inspect_schema.py [--url URL]`.
"""
from pathlib import Path
import argparse
import sys

from sqlalchemy import inspect

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from crm_radio.database import create_db_engine
from crm_radio.models.models import Base


def main(argv=None):
    parser = argparse.ArgumentParser(description="Inspection du schéma CRM radio")
    parser.add_argument("--url", help="URL SQLAlchemy (défaut : DATABASE_URL)")
    args = parser.parse_args(argv)

    engine = create_db_engine(args.url)
    try:
        inspector = inspect(engine)
        present = set(inspector.get_table_names())
        for table in sorted(Base.metadata.tables):
            if table not in present:
                print(f"\nTable: {table}  ABSENTE")
                continue
            print(f"\nTable: {table}")
            for col in inspector.get_columns(table):
                nullable = col.get("nullable")
                print(f"  - {col.get('name')} ({col.get('type')}){' NULL' if nullable else ' NOT NULL'}")
        missing = set(Base.metadata.tables) - present
    finally:
        engine.dispose()
    return 1 if missing else 0


if __name__ == "__main__":
    sys.exit(main())
