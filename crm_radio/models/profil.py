from sqlalchemy import Column, Integer, String, ForeignKey
from crm_radio.database import Base


class ProfilProfessionnel(Base):
    __tablename__ = "profils_professionnels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, unique=True)
    type_marche = Column(Integer, ForeignKey("ref_types_marche.id"), nullable=True)


class ProfilTypeDiffusion(Base):
    """Types de diffusion d'un client (une ligne par type)."""

    __tablename__ = "profil_types_diffusion"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    type_diffusion_id = Column(Integer, ForeignKey("ref_types_diffusion.id"), nullable=False)


class ConfigurationRcs(Base):
    __tablename__ = "configurations_rcs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, unique=True)
    logiciel_programmation = Column(String(255), nullable=True)
    logiciel_diffusion = Column(String(255), nullable=True)
    logiciel_planification = Column(String(255), nullable=True)
    streaming_provider = Column(String(255), nullable=True)
