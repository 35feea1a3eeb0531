#!/usr/bin/env python3
"""
Rapport de répartition du chiffre d'affaires mensuel par éditeur, en ligne de commande.

Usage:
    python scripts/distribution_report.py --dimension editeur --filtre pays=France --filtre statut_client=Client
    python scripts/distribution_report.py --csv data/repartition.csv

Notes:
- Les filtres suivent les mêmes règles que l'API (/api/analytics/distribution).
- Sortie tableau formatée fr-FR, ou CSV brut avec --csv.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from crm_radio.database import create_db_engine, make_session_factory
from crm_radio.services.analytics import AnalyticsError, get_distribution
from crm_radio.services.formatting import format_currency, format_percentage, round_half_up


def parse_filters(items: List[str]) -> Dict[str, str]:
    filters: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Filtre mal formé : {item!r} (attendu clé=valeur)")
        filters[key.strip()] = value.strip()
    return filters


def to_frame(rows: List[dict]) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=["name", "value", "color"])
    total = df["value"].sum()
    df["part"] = (df["value"] * 100 / total) if total else 0.0
    return df


def render(df: pd.DataFrame) -> str:
    if df.empty:
        return "Aucune donnée pour ces filtres."
    lines = []
    width = max(len(str(n)) for n in df["name"])
    for row in df.itertuples(index=False):
        lines.append(
            f"{str(row.name).ljust(width)}  {format_currency(row.value):>16}  "
            f"{format_percentage(round_half_up(row.part)):>6}  {row.color}"
        )
    lines.append(f"{'Total'.ljust(width)}  {format_currency(df['value'].sum()):>16}")
    return "\n".join(lines)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Répartition du CA mensuel des services")
    parser.add_argument("--dimension", default="editeur", help="Dimension d'analyse (défaut : editeur)")
    parser.add_argument("--filtre", action="append", default=[], help="Filtre clé=valeur, répétable")
    parser.add_argument("--url", help="URL SQLAlchemy (défaut : DATABASE_URL)")
    parser.add_argument("--csv", type=Path, help="Écrit le résultat en CSV au lieu de l'afficher")
    args = parser.parse_args(argv)

    try:
        filters = parse_filters(args.filtre)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    engine = create_db_engine(args.url)
    SessionLocal = make_session_factory(engine)
    db = SessionLocal()
    try:
        rows = get_distribution(db, args.dimension, filters)
    except AnalyticsError as exc:
        print(exc.message, file=sys.stderr)
        return 2 if exc.status_code == 400 else 1
    finally:
        db.close()
        engine.dispose()

    df = to_frame(rows)
    if args.csv:
        args.csv.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(args.csv, index=False)
        print(f"{len(df)} lignes écrites dans {args.csv}")
    else:
        print(render(df))
    return 0


if __name__ == "__main__":
    sys.exit(main())
