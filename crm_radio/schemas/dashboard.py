from pydantic import BaseModel, Field, field_validator
from typing import Optional


class KpisSchema(BaseModel):
    total: int = 0
    clients: int = 0
    prospects: int = 0


class RevenueSchema(BaseModel):
    # "global" est un mot réservé Python
    global_revenue: float = Field(default=0.0, alias="global")
    indesRadio: float = 0.0
    display: dict[str, str] = Field(default_factory=dict)

    class Config:
        populate_by_name = True


class SoftwareDistributionSchema(BaseModel):
    name: str
    count: int
    logoUrl: str


class RecentClientSchema(BaseModel):
    id: int
    nom_radio: Optional[str] = None
    nom_groupe: Optional[str] = None
    statut_client: Optional[str] = None
    responsable_nom: Optional[str] = None


class TopClientSchema(BaseModel):
    id: int
    nom_radio: Optional[str] = None
    pays: Optional[str] = None
    code_iso: Optional[str] = None
    revenue: float = 0.0

    @field_validator("revenue", mode="before")
    @classmethod
    def parse_revenue(cls, v):
        if v is None:
            return 0.0
        try:
            return float(v)
        except Exception:
            return 0.0


class TopGroupSchema(BaseModel):
    nom_groupe: str
    pays: Optional[str] = None
    code_iso: Optional[str] = None
    revenue: float = 0.0


class DashboardSchema(BaseModel):
    kpis: KpisSchema
    revenue: RevenueSchema
    softwareDistribution: list[SoftwareDistributionSchema] = []
    recentClients: list[RecentClientSchema] = []
    topClients: list[TopClientSchema] = []
    topGroups: list[TopGroupSchema] = []


class DashboardResponse(BaseModel):
    success: bool = True
    data: DashboardSchema
