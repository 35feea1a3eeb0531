import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

from crm_radio.services.analytics import FOCUS_GROUPEMENT, HOUSE_EDITEUR, MONTHLY_REVENUE
from crm_radio.services.formatting import format_currency


logger = logging.getLogger("uvicorn.error")

DEFAULT_ICON = "/icons/default.png"

# CA mensuel d'un client : revenus déclarés + services souscrits
CLIENT_REVENUE = (
    f"{MONTHLY_REVENUE}"
    " + COALESCE((SELECT SUM(cs.valeur_mensuelle) FROM client_services cs WHERE cs.client_id = c.id), 0)"
)


def rows_to_dicts(rows):
    return [dict(row._mapping) for row in rows]


def _widget(db: Session, name: str, loader, default):
    """Exécute un widget ; en cas d'échec il retombe sur sa valeur vide sans bloquer les autres."""
    try:
        return loader()
    except Exception as exc:
        logger.exception(f"dashboard widget '{name}' failed: {exc}", exc_info=exc)
        db.rollback()
        return default


def _load_kpis(db: Session) -> dict:
    row = db.execute(text(
        """
        SELECT
            COUNT(*) AS total,
            COALESCE(SUM(CASE WHEN statut_client = 'Client' THEN 1 ELSE 0 END), 0) AS clients,
            COALESCE(SUM(CASE WHEN statut_client = 'Prospect' THEN 1 ELSE 0 END), 0) AS prospects
        FROM clients
        """
    )).fetchone()
    m = row._mapping
    return {"total": int(m["total"] or 0), "clients": int(m["clients"] or 0), "prospects": int(m["prospects"] or 0)}


def _load_revenue(db: Session) -> dict:
    row = db.execute(text(
        f"""
        SELECT
            COALESCE(SUM(total_revenue), 0) * 12 AS global_revenue,
            COALESCE(SUM(CASE WHEN groupement_nom = :groupement THEN total_revenue ELSE 0 END), 0) * 12 AS focus_revenue
        FROM (
            SELECT g.nom AS groupement_nom, {CLIENT_REVENUE} AS total_revenue
            FROM clients c
            LEFT JOIN ref_groupements g ON g.id = c.groupement_id
        ) client_revenues
        """
    ), {"groupement": FOCUS_GROUPEMENT}).fetchone()
    m = row._mapping
    global_revenue = float(m["global_revenue"] or 0)
    focus_revenue = float(m["focus_revenue"] or 0)
    return {
        "global": global_revenue,
        "indesRadio": focus_revenue,
        "display": {
            "global": format_currency(global_revenue),
            "indesRadio": format_currency(focus_revenue),
        },
    }


def _load_software_distribution(db: Session) -> list[dict]:
    rows = db.execute(text(
        """
        WITH all_software_usages AS (
            SELECT logiciel_programmation AS software_name FROM configurations_rcs WHERE logiciel_programmation IS NOT NULL
            UNION ALL
            SELECT logiciel_diffusion AS software_name FROM configurations_rcs WHERE logiciel_diffusion IS NOT NULL
            UNION ALL
            SELECT logiciel_planification AS software_name FROM configurations_rcs WHERE logiciel_planification IS NOT NULL
        )
        SELECT l.nom AS name, COUNT(u.software_name) AS count, l.icon_filename
        FROM all_software_usages u
        JOIN (
            SELECT rl.nom, MIN(rl.icon_filename) AS icon_filename
            FROM ref_logiciels rl
            JOIN ref_editeurs e ON e.id = rl.editeur_id
            WHERE e.nom = :editeur
            GROUP BY rl.nom
        ) l ON l.nom = u.software_name
        GROUP BY l.nom, l.icon_filename
        ORDER BY count DESC, name ASC
        """
    ), {"editeur": HOUSE_EDITEUR}).fetchall()
    out = []
    for r in rows:
        m = r._mapping
        icon = m["icon_filename"]
        out.append({
            "name": m["name"],
            "count": int(m["count"] or 0),
            "logoUrl": f"/icons/{icon}" if icon else DEFAULT_ICON,
        })
    return out


def _load_recent_clients(db: Session, limit: int = 10) -> list[dict]:
    # Fiches jamais modifiées en dernier, quel que soit le moteur
    rows = db.execute(text(
        """
        SELECT
            c.id,
            c.nom_radio,
            c.nom_groupe,
            c.statut_client,
            (
                SELECT MIN(ct.nom)
                FROM contacts ct
                WHERE ct.client_id = c.id AND ct.est_contact_principal = :principal
            ) AS responsable_nom
        FROM clients c
        ORDER BY CASE WHEN c.updated_at IS NULL THEN 1 ELSE 0 END, c.updated_at DESC, c.id DESC
        LIMIT :limit
        """
    ), {"principal": True, "limit": limit}).fetchall()
    return rows_to_dicts(rows)


def _load_top_clients(db: Session, limit: int = 10) -> list[dict]:
    rows = db.execute(text(
        f"""
        SELECT c.id, c.nom_radio, c.pays, p.code_iso, ({CLIENT_REVENUE}) * 12 AS revenue
        FROM clients c
        LEFT JOIN ref_pays p ON p.nom = c.pays
        ORDER BY revenue DESC, c.id ASC
        LIMIT :limit
        """
    ), {"limit": limit}).fetchall()
    out = rows_to_dicts(rows)
    for item in out:
        item["revenue"] = float(item["revenue"] or 0)
    return out


def _load_top_groups(db: Session, limit: int = 10) -> list[dict]:
    rows = db.execute(text(
        f"""
        SELECT nom_groupe, MIN(pays) AS pays, MIN(code_iso) AS code_iso, SUM(total_revenue) * 12 AS revenue
        FROM (
            SELECT c.nom_groupe, c.pays, p.code_iso, {CLIENT_REVENUE} AS total_revenue
            FROM clients c
            LEFT JOIN ref_pays p ON p.nom = c.pays
            WHERE c.nom_groupe IS NOT NULL AND c.nom_groupe != ''
        ) group_revenues
        GROUP BY nom_groupe
        ORDER BY revenue DESC, nom_groupe ASC
        LIMIT :limit
        """
    ), {"limit": limit}).fetchall()
    out = rows_to_dicts(rows)
    for item in out:
        item["revenue"] = float(item["revenue"] or 0)
    return out


def get_dashboard(db: Session) -> dict:
    return {
        "kpis": _widget(db, "kpis", lambda: _load_kpis(db), {"total": 0, "clients": 0, "prospects": 0}),
        "revenue": _widget(
            db,
            "revenue",
            lambda: _load_revenue(db),
            {"global": 0.0, "indesRadio": 0.0, "display": {"global": format_currency(0), "indesRadio": format_currency(0)}},
        ),
        "softwareDistribution": _widget(db, "softwareDistribution", lambda: _load_software_distribution(db), []),
        "recentClients": _widget(db, "recentClients", lambda: _load_recent_clients(db), []),
        "topClients": _widget(db, "topClients", lambda: _load_top_clients(db), []),
        "topGroups": _widget(db, "topGroups", lambda: _load_top_groups(db), []),
    }
