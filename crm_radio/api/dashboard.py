from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crm_radio.database import get_db
from crm_radio.schemas.dashboard import DashboardResponse
from crm_radio.services.dashboard import get_dashboard


router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardResponse)
def api_dashboard(db: Session = Depends(get_db)):
    """Toutes les données de la page d'accueil ; un widget en erreur revient vide."""
    return {"success": True, "data": get_dashboard(db)}
