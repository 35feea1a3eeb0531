"""Construction des requêtes d'analyse (répartition, classement, vue groupée, KPIs RCS).

Les requêtes sont assemblées à partir de registres fermés : seuls les noms de
colonnes/jointures déclarés ici entrent dans le texte SQL, les valeurs fournies
par l'appelant passent toujours en paramètres liés (:p1, :p2, ...).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crm_radio.services.formatting import assign_colors, format_percentage, round_half_up


logger = logging.getLogger("uvicorn.error")

FOCUS_GROUPEMENT = os.getenv("CRM_FOCUS_GROUPEMENT", "Indés Radio")
HOUSE_EDITEUR = os.getenv("CRM_HOUSE_EDITEUR", "RCS")

EXCLUDE_NON_CLIENTS = "c.statut_client != 'Non Client'"


# ---------------- Erreurs ----------------
class AnalyticsError(Exception):
    status_code = 400
    message = "Requête d'analyse invalide."

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


class UnsupportedDimension(AnalyticsError):
    message = "Dimension d'analyse non supportée."


class InvalidFilterValue(AnalyticsError):
    def __init__(self, key: str, value: Any = None):
        self.key = key
        self.value = value
        super().__init__(f"Valeur invalide pour le filtre '{key}'.")


class DataSourceError(AnalyticsError):
    status_code = 500
    message = "Erreur serveur lors de la récupération des statistiques."


# ---------------- Registres ----------------
# Ordre d'émission fixe ; une jointure peut dépendre d'une précédente
JOINS = {
    "client_services": "LEFT JOIN client_services cs ON cs.client_id = c.id",
    "ref_services": "LEFT JOIN ref_services rs ON rs.id = cs.service_id",
    "ref_editeurs": "LEFT JOIN ref_editeurs re ON re.id = rs.editeur_id",
    "profils_professionnels": "LEFT JOIN profils_professionnels pp ON pp.client_id = c.id",
    "ref_types_marche": "LEFT JOIN ref_types_marche rtm ON rtm.id = pp.type_marche",
    "configurations_rcs": "LEFT JOIN configurations_rcs cr ON cr.client_id = c.id",
    "profil_types_diffusion": "LEFT JOIN profil_types_diffusion ptd ON ptd.client_id = c.id",
    "ref_types_diffusion": "LEFT JOIN ref_types_diffusion rtd ON rtd.id = ptd.type_diffusion_id",
    "latest_audience": "LEFT JOIN latest_audience_cte la ON la.client_id = c.id AND la.rn = 1",
}


# Bornes d'un BIGINT signé
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def _parse_text(key: str, value: Any) -> str:
    return str(value)


def _parse_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidFilterValue(key, value)
    if isinstance(value, int):
        number = value
    else:
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            raise InvalidFilterValue(key, value) from None
    if not INT_MIN <= number <= INT_MAX:
        raise InvalidFilterValue(key, value)
    return number


@dataclass(frozen=True)
class FilterSpec:
    key: str
    column: str
    comparator: str = "="
    parse: Callable[[str, Any], Any] = _parse_text
    joins: tuple[str, ...] = ()


@dataclass(frozen=True)
class Dimension:
    key: str
    column: str
    label: str
    joins: tuple[str, ...] = ()


FILTERS: dict[str, FilterSpec] = {
    "statut_client": FilterSpec("statut_client", "c.statut_client"),
    "pays": FilterSpec("pays", "c.pays"),
    "clientId": FilterSpec("clientId", "c.id", parse=_parse_int),
    "nom_groupe": FilterSpec("nom_groupe", "c.nom_groupe"),
    "type_marche": FilterSpec(
        "type_marche", "pp.type_marche", parse=_parse_int, joins=("profils_professionnels",)
    ),
    "logiciel": FilterSpec("logiciel", "cr.logiciel_programmation", joins=("configurations_rcs",)),
    "type_diffusion": FilterSpec(
        "type_diffusion", "ptd.type_diffusion_id", parse=_parse_int, joins=("profil_types_diffusion",)
    ),
}

# Filtres portant uniquement sur la table clients
CLIENT_FILTERS = ("statut_client", "pays", "clientId", "nom_groupe")

DISTRIBUTION_DIMENSIONS: dict[str, Dimension] = {
    "editeur": Dimension(
        "editeur", "re.nom", "Éditeur", joins=("client_services", "ref_services", "ref_editeurs")
    ),
}

TOP_DIMENSIONS = ("logiciel",)
SOFTWARE_COLUMNS = (
    "cr.logiciel_programmation",
    "cr.logiciel_diffusion",
    "cr.logiciel_planification",
)

OVERVIEW_DIMENSIONS: dict[str, Dimension] = {
    "statut_client": Dimension("statut_client", "c.statut_client", "Statut du Client"),
    "type_marche": Dimension(
        "type_marche", "rtm.nom", "Type de marché", joins=("profils_professionnels", "ref_types_marche")
    ),
    "pays": Dimension("pays", "c.pays", "Pays"),
    "logiciel": Dimension(
        "logiciel", "cr.logiciel_programmation", "Logiciel (Prog.)", joins=("configurations_rcs",)
    ),
    "type_diffusion": Dimension(
        "type_diffusion",
        "rtd.nom",
        "Type de diffusion",
        joins=("profil_types_diffusion", "ref_types_diffusion"),
    ),
}
DEFAULT_OVERVIEW_DIMENSION = "statut_client"

LATEST_AUDIENCE_CTE = """
    latest_audience_cte AS (
        SELECT
            a.client_id,
            a.audience,
            ROW_NUMBER() OVER (PARTITION BY a.client_id ORDER BY v.annee DESC, v.nom DESC) AS rn
        FROM audiences a
        JOIN ref_vagues v ON v.id = a.vague_id
    )
"""

MONTHLY_REVENUE = (
    "COALESCE(c.revenus_programmation_mensuel, 0)"
    " + COALESCE(c.revenus_diffusion_mensuel, 0)"
    " + COALESCE(c.revenus_planification_mensuel, 0)"
    " + COALESCE(c.revenus_streaming_mensuel, 0)"
)

# Type de logiciel RCS -> colonne de configurations_rcs
RCS_SOFTWARE_TYPES = {
    "programmation": "logiciel_programmation",
    "diffusion": "logiciel_diffusion",
    "planification": "logiciel_planification",
    "streaming": "streaming_provider",
}


# ---------------- Construction ----------------
@dataclass
class SqlQuery:
    sql: str
    params: list = field(default_factory=list)

    def bind(self) -> dict:
        return {f"p{i}": value for i, value in enumerate(self.params, start=1)}


class WhereBuilder:
    """Accumule des prédicats d'égalité et leurs paramètres positionnels."""

    def __init__(self, base: tuple[str, ...] = ()):
        self.clauses: list[str] = list(base)
        self.params: list = []
        self.joins: list[str] = []

    def next_slot(self, value: Any) -> str:
        self.params.append(value)
        return f":p{len(self.params)}"

    def add(self, flt: FilterSpec, value: Any) -> None:
        self.clauses.append(f"{flt.column} {flt.comparator} {self.next_slot(value)}")
        for join in flt.joins:
            if join not in self.joins:
                self.joins.append(join)

    def apply(self, filters: Mapping[str, Any] | None, allowed: tuple[str, ...] | None = None) -> "WhereBuilder":
        filters = filters or {}
        # Ordre du registre (et non de la requête) : SQL identique pour des filtres identiques
        for key, flt in FILTERS.items():
            if allowed is not None and key not in allowed:
                continue
            raw = filters.get(key)
            if raw is None or raw == "":
                continue
            self.add(flt, flt.parse(key, raw))
        return self

    def sql(self) -> str:
        return f"WHERE {' AND '.join(self.clauses)}" if self.clauses else ""


def resolve_joins(*groups: tuple[str, ...] | list[str]) -> str:
    wanted = {join for group in groups for join in group}
    return "\n".join(clause for name, clause in JOINS.items() if name in wanted)


def build_distribution_query(dimension: Optional[str], filters: Mapping[str, Any] | None = None) -> SqlQuery:
    dim = DISTRIBUTION_DIMENSIONS.get(dimension or "")
    if dim is None:
        raise UnsupportedDimension()
    where = WhereBuilder((EXCLUDE_NON_CLIENTS,)).apply(filters)
    sql = f"""
        SELECT
            {dim.column} AS name,
            COALESCE(SUM(cs.valeur_mensuelle), 0) AS value
        FROM clients c
        {resolve_joins(dim.joins, where.joins)}
        {where.sql()}
        GROUP BY {dim.column}
        HAVING {dim.column} IS NOT NULL
        ORDER BY value DESC, name ASC
    """
    return SqlQuery(sql, where.params)


def parse_limit(raw: Any, default: int = 5) -> int:
    if raw is None or raw == "":
        return default
    limit = _parse_int("limit", raw)
    if limit <= 0:
        raise InvalidFilterValue("limit", raw)
    return limit


def build_top_query(dimension: Optional[str], filters: Mapping[str, Any] | None = None, limit: Any = None) -> SqlQuery:
    if dimension not in TOP_DIMENSIONS:
        raise UnsupportedDimension("Dimension non supportée pour le classement.")
    where = WhereBuilder((EXCLUDE_NON_CLIENTS,)).apply(filters, allowed=CLIENT_FILTERS)
    where_sql = where.sql()
    # Les trois sous-requêtes réutilisent les mêmes paramètres nommés
    selects = [
        f"""
        SELECT {column} AS name, c.id AS client_id
        FROM clients c
        JOIN configurations_rcs cr ON cr.client_id = c.id
        {where_sql} AND {column} IS NOT NULL AND {column} != ''
        """
        for column in SOFTWARE_COLUMNS
    ]
    limit_slot = where.next_slot(parse_limit(limit))
    sql = f"""
        WITH all_software_users AS (
            {" UNION ALL ".join(selects)}
        )
        SELECT name, COUNT(DISTINCT client_id) AS value
        FROM all_software_users
        GROUP BY name
        ORDER BY value DESC, name ASC
        LIMIT {limit_slot}
    """
    return SqlQuery(sql, where.params)


def build_overview_queries(group_by: Optional[str], filters: Mapping[str, Any] | None = None) -> tuple[Dimension, SqlQuery, SqlQuery]:
    dim = OVERVIEW_DIMENSIONS.get(group_by or "") or OVERVIEW_DIMENSIONS[DEFAULT_OVERVIEW_DIMENSION]
    where = WhereBuilder().apply(filters)
    base = f"""
        FROM clients c
        {resolve_joins(dim.joins, where.joins, ("latest_audience",))}
        {where.sql()}
    """
    grouped = f"""
        WITH {LATEST_AUDIENCE_CTE}
        SELECT
            {dim.column} AS category,
            COUNT(DISTINCT c.id) AS client_count,
            COALESCE(SUM({MONTHLY_REVENUE}), 0) AS total_monthly_revenue,
            COALESCE(SUM(la.audience), 0) AS total_audience
        {base}
        GROUP BY {dim.column}
        ORDER BY total_monthly_revenue DESC, category ASC
    """
    totals = f"""
        WITH {LATEST_AUDIENCE_CTE}
        SELECT
            COUNT(DISTINCT c.id) AS total_clients,
            COALESCE(SUM({MONTHLY_REVENUE}), 0) AS total_revenue,
            COALESCE(SUM(la.audience), 0) AS total_audience
        {base}
    """
    return dim, SqlQuery(grouped, where.params), SqlQuery(totals, list(where.params))


# ---------------- Exécution ----------------
def run_query(db: Session, query: SqlQuery) -> list:
    try:
        return db.execute(text(query.sql), query.bind()).fetchall()
    except SQLAlchemyError as exc:
        logger.exception("Analytics query failed: %s", exc)
        raise DataSourceError() from exc


def _num(value) -> float:
    return float(value) if value is not None else 0.0


def get_distribution(db: Session, dimension: Optional[str], filters: Mapping[str, Any] | None = None) -> list[dict]:
    """Répartition du CA mensuel des services par dimension, prête pour un camembert."""
    query = build_distribution_query(dimension, filters)
    rows = run_query(db, query)
    return assign_colors([{"name": r._mapping["name"], "value": _num(r._mapping["value"])} for r in rows])


def get_top(db: Session, dimension: Optional[str], filters: Mapping[str, Any] | None = None, limit: Any = None) -> list[dict]:
    query = build_top_query(dimension, filters, limit)
    rows = run_query(db, query)
    return [{"name": r._mapping["name"], "value": int(r._mapping["value"] or 0)} for r in rows]


def get_overview(db: Session, group_by: Optional[str], filters: Mapping[str, Any] | None = None) -> dict:
    dim, grouped, totals = build_overview_queries(group_by, filters)
    rows = run_query(db, grouped)
    total_rows = run_query(db, totals)
    tm = total_rows[0]._mapping if total_rows else {}
    return {
        "groupBy": dim.label,
        "results": [
            {
                "category": r._mapping["category"],
                "client_count": int(r._mapping["client_count"] or 0),
                "total_monthly_revenue": _num(r._mapping["total_monthly_revenue"]),
                "total_audience": int(r._mapping["total_audience"] or 0),
            }
            for r in rows
        ],
        "totalClients": int(tm.get("total_clients") or 0),
        "totalRevenue": _num(tm.get("total_revenue")),
        "totalAudience": int(tm.get("total_audience") or 0),
    }


def get_rcs_kpis(db: Session, groupement: str | None = None, editeur: str | None = None) -> dict:
    """Part d'audience des radios du groupement équipées en logiciels de l'éditeur maison."""
    clients = run_query(
        db,
        SqlQuery(
            f"""
            WITH {LATEST_AUDIENCE_CTE}
            SELECT
                c.id,
                cr.logiciel_programmation,
                cr.logiciel_diffusion,
                cr.logiciel_planification,
                cr.streaming_provider,
                la.audience AS latest_audience
            FROM clients c
            LEFT JOIN configurations_rcs cr ON cr.client_id = c.id
            LEFT JOIN ref_groupements g ON g.id = c.groupement_id
            LEFT JOIN latest_audience_cte la ON la.client_id = c.id AND la.rn = 1
            WHERE g.nom = :p1
            """,
            [groupement or FOCUS_GROUPEMENT],
        ),
    )
    software = run_query(
        db,
        SqlQuery(
            """
            SELECT l.nom, l.type_logiciel
            FROM ref_logiciels l
            JOIN ref_editeurs e ON e.id = l.editeur_id
            WHERE e.nom = :p1
            """,
            [editeur or HOUSE_EDITEUR],
        ),
    )
    house = {kind: set() for kind in RCS_SOFTWARE_TYPES}
    for row in software:
        m = row._mapping
        if m["type_logiciel"] in house:
            house[m["type_logiciel"]].add(m["nom"])

    total_audience = sum(
        r._mapping["latest_audience"] for r in clients
        if r._mapping["latest_audience"] is not None and r._mapping["latest_audience"] > 0
    )
    kpis: dict[str, int] = {}
    counts: dict[tuple[str, str], int] = {}
    for kind, column in RCS_SOFTWARE_TYPES.items():
        audience = 0
        for r in clients:
            m = r._mapping
            name = m[column]
            if name:
                counts[(kind, name)] = counts.get((kind, name), 0) + 1
            if name in house[kind] and m["latest_audience"] is not None:
                audience += m["latest_audience"]
        kpis[kind] = round_half_up(audience / total_audience * 100) if total_audience > 0 else 0

    usage = [
        {"type": kind, "name": name, "count": count}
        for (kind, name), count in sorted(counts.items(), key=lambda item: (item[0][0], -item[1], item[0][1]))
    ]
    return {
        "kpis": kpis,
        "labels": {kind: format_percentage(value) for kind, value in kpis.items()},
        "softwareUsage": usage,
    }
