from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional

from crm_radio.database import get_db
from crm_radio.schemas.analytics import (
    DistributionResponse,
    ErrorSchema,
    OverviewResponse,
    RcsKpisResponse,
    TopResponse,
)
from crm_radio.services.analytics import get_distribution, get_overview, get_rcs_kpis, get_top


router = APIRouter(prefix="/api/analytics", tags=["Analytics"])

ERROR_RESPONSES = {400: {"model": ErrorSchema}, 500: {"model": ErrorSchema}}


def _filters(request: Request, *reserved: str) -> dict:
    """Paramètres de requête restants = filtres (les clés inconnues sont ignorées par le service)."""
    return {k: v for k, v in request.query_params.items() if k not in reserved}


@router.get("", response_model=OverviewResponse, responses=ERROR_RESPONSES)
def api_overview(
    request: Request,
    group_by: Optional[str] = Query(default="statut_client", alias="groupBy"),
    db: Session = Depends(get_db),
):
    """Vue groupée : nombre de clients, CA mensuel et audience par catégorie."""
    return {"success": True, "data": get_overview(db, group_by, _filters(request, "groupBy"))}


@router.get("/distribution", response_model=DistributionResponse, responses=ERROR_RESPONSES)
def api_distribution(
    request: Request,
    dimension: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    """Répartition du CA des services par éditeur (camembert)."""
    return {"success": True, "data": get_distribution(db, dimension, _filters(request, "dimension"))}


@router.get("/top", response_model=TopResponse, responses=ERROR_RESPONSES)
def api_top(
    request: Request,
    dimension: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    return {"success": True, "data": get_top(db, dimension, _filters(request, "dimension", "limit"), limit)}


@router.get("/rcs-kpis", response_model=RcsKpisResponse, responses=ERROR_RESPONSES)
def api_rcs_kpis(db: Session = Depends(get_db)):
    return {"success": True, "data": get_rcs_kpis(db)}
