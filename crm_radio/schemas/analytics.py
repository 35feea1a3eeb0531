from pydantic import BaseModel, field_validator
from typing import Optional


class ErrorSchema(BaseModel):
    success: bool = False
    message: str


# ---------------- Répartition ----------------
class DistributionItemSchema(BaseModel):
    name: str
    value: float
    color: str

    class Config:
        from_attributes = True


class DistributionResponse(BaseModel):
    success: bool = True
    data: list[DistributionItemSchema]


# ---------------- Classement ----------------
class TopItemSchema(BaseModel):
    name: str
    value: int


class TopResponse(BaseModel):
    success: bool = True
    data: list[TopItemSchema]


# ---------------- Vue groupée ----------------
class OverviewRowSchema(BaseModel):
    category: Optional[str] = None
    client_count: int = 0
    total_monthly_revenue: float = 0.0
    total_audience: int = 0

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v):
        # Les regroupements numériques (ex. pays saisi en code) restent des libellés
        if v is None:
            return v
        return str(v)


class OverviewSchema(BaseModel):
    groupBy: str
    results: list[OverviewRowSchema]
    totalClients: int = 0
    totalRevenue: float = 0.0
    totalAudience: int = 0


class OverviewResponse(BaseModel):
    success: bool = True
    data: OverviewSchema


# ---------------- KPIs RCS ----------------
class SoftwareUsageSchema(BaseModel):
    type: str
    name: str
    count: int


class RcsKpisSchema(BaseModel):
    kpis: dict[str, int]
    labels: dict[str, str]
    softwareUsage: list[SoftwareUsageSchema]


class RcsKpisResponse(BaseModel):
    success: bool = True
    data: RcsKpisSchema
