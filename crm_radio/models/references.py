from sqlalchemy import Column, Integer, String, ForeignKey
from crm_radio.database import Base


class RefEditeur(Base):
    __tablename__ = "ref_editeurs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nom = Column(String(255), nullable=True)


class RefService(Base):
    __tablename__ = "ref_services"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nom = Column(String(255), nullable=True)
    editeur_id = Column(Integer, ForeignKey("ref_editeurs.id"), nullable=True)


class RefLogiciel(Base):
    __tablename__ = "ref_logiciels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nom = Column(String(255), nullable=False)
    # 'programmation' | 'diffusion' | 'planification' | 'streaming'
    type_logiciel = Column(String(50), nullable=True)
    editeur_id = Column(Integer, ForeignKey("ref_editeurs.id"), nullable=True)
    icon_filename = Column(String(255), nullable=True)


class RefGroupement(Base):
    __tablename__ = "ref_groupements"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nom = Column(String(255), nullable=False)


class RefTypeMarche(Base):
    __tablename__ = "ref_types_marche"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nom = Column(String(255), nullable=False)


class RefTypeDiffusion(Base):
    __tablename__ = "ref_types_diffusion"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nom = Column(String(255), nullable=False)


class RefPays(Base):
    __tablename__ = "ref_pays"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nom = Column(String(100), nullable=False)
    code_iso = Column(String(2), nullable=True)


class RefVague(Base):
    __tablename__ = "ref_vagues"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nom = Column(String(100), nullable=False)
    annee = Column(Integer, nullable=False)
