from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric
from crm_radio.database import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nom_radio = Column(String(255), nullable=True)
    # 'Client' | 'Prospect' | 'Non Client'
    statut_client = Column(String(50), nullable=True)
    pays = Column(String(100), nullable=True)
    nom_groupe = Column(String(255), nullable=True)
    groupement_id = Column(Integer, ForeignKey("ref_groupements.id"), nullable=True)
    revenus_programmation_mensuel = Column(Numeric(12, 2), nullable=True)
    revenus_diffusion_mensuel = Column(Numeric(12, 2), nullable=True)
    revenus_planification_mensuel = Column(Numeric(12, 2), nullable=True)
    revenus_streaming_mensuel = Column(Numeric(12, 2), nullable=True)
    updated_at = Column(DateTime, nullable=True)


class ClientService(Base):
    __tablename__ = "client_services"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("ref_services.id"), nullable=False)
    valeur_mensuelle = Column(Numeric(12, 2), nullable=True, default=0)
