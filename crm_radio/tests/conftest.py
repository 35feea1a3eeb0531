import sys
from datetime import datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from crm_radio.database import create_db_engine
from crm_radio.models.models import (
    Base,
    Audience,
    Client,
    ClientService,
    ConfigurationRcs,
    Contact,
    ProfilProfessionnel,
    ProfilTypeDiffusion,
    RefEditeur,
    RefGroupement,
    RefLogiciel,
    RefPays,
    RefService,
    RefTypeDiffusion,
    RefTypeMarche,
    RefVague,
)


def seed(db: Session) -> None:
    """Jeu de données commun.

    Répartition attendue par éditeur (hors 'Non Client') :
      RCS 330 (c1 100, c2 200 + 30), WideOrbit 130 (c1 50, c3 80), Radio Assist 0.
    Le service s5 appartient à un éditeur sans nom -> groupe NULL écarté.
    """
    db.add_all([
        RefGroupement(id=1, nom="Indés Radio"),
        RefGroupement(id=2, nom="Les Radios Locales"),
        RefEditeur(id=1, nom="RCS"),
        RefEditeur(id=2, nom="WideOrbit"),
        RefEditeur(id=3, nom="Radio Assist"),
        RefEditeur(id=4, nom=None),
        RefEditeur(id=5, nom="WinMedia Soft"),
        RefPays(id=1, nom="France", code_iso="FR"),
        RefPays(id=2, nom="Belgique", code_iso="BE"),
        RefTypeMarche(id=1, nom="Commerciale"),
        RefTypeMarche(id=2, nom="Associative"),
        RefTypeDiffusion(id=1, nom="FM"),
        RefTypeDiffusion(id=2, nom="DAB+"),
        RefVague(id=1, nom="2023-1", annee=2023),
        RefVague(id=2, nom="2024-1", annee=2024),
        RefVague(id=3, nom="2024-2", annee=2024),
    ])
    db.flush()
    db.add_all([
        RefService(id=1, nom="GSelector Cloud", editeur_id=1),
        RefService(id=2, nom="Zetta Hosting", editeur_id=1),
        RefService(id=3, nom="WO Traffic", editeur_id=2),
        RefService(id=4, nom="Assistance", editeur_id=3),
        RefService(id=5, nom="Service orphelin", editeur_id=4),
        RefLogiciel(id=1, nom="Zetta", type_logiciel="programmation", editeur_id=1, icon_filename="zetta.png"),
        RefLogiciel(id=2, nom="Zetta", type_logiciel="diffusion", editeur_id=1, icon_filename="zetta.png"),
        RefLogiciel(id=3, nom="GSelector", type_logiciel="planification", editeur_id=1, icon_filename=None),
        RefLogiciel(id=4, nom="RCS Revma", type_logiciel="streaming", editeur_id=1, icon_filename="revma.png"),
        RefLogiciel(id=5, nom="WinMedia", type_logiciel="diffusion", editeur_id=5, icon_filename="winmedia.png"),
        Client(
            id=1, nom_radio="Radio Alpha", statut_client="Client", pays="France", nom_groupe="Groupe Sud",
            groupement_id=1, revenus_programmation_mensuel=100, revenus_diffusion_mensuel=50,
            updated_at=datetime(2024, 3, 1),
        ),
        Client(
            id=2, nom_radio="Radio Beta", statut_client="Client", pays="Belgique", nom_groupe="Groupe Sud",
            groupement_id=2, revenus_programmation_mensuel=200, updated_at=datetime(2024, 5, 10),
        ),
        Client(
            id=3, nom_radio="Radio Gamma", statut_client="Prospect", pays="France", nom_groupe="Groupe Nord",
            groupement_id=1, updated_at=datetime(2024, 1, 15),
        ),
        Client(
            id=4, nom_radio="Radio Delta", statut_client="Non Client", pays="France", nom_groupe=None,
            revenus_programmation_mensuel=500,
        ),
        Client(
            id=5, nom_radio="Radio Epsilon", statut_client="Client", pays="France", nom_groupe="",
            groupement_id=1, revenus_diffusion_mensuel=20, updated_at=datetime(2024, 5, 20),
        ),
    ])
    db.flush()
    db.add_all([
        ClientService(client_id=1, service_id=1, valeur_mensuelle=100),
        ClientService(client_id=1, service_id=3, valeur_mensuelle=50),
        ClientService(client_id=1, service_id=4, valeur_mensuelle=0),
        ClientService(client_id=2, service_id=1, valeur_mensuelle=200),
        ClientService(client_id=2, service_id=2, valeur_mensuelle=30),
        ClientService(client_id=3, service_id=3, valeur_mensuelle=80),
        ClientService(client_id=3, service_id=5, valeur_mensuelle=40),
        ClientService(client_id=4, service_id=1, valeur_mensuelle=1000),
        ClientService(client_id=4, service_id=3, valeur_mensuelle=1000),
        ProfilProfessionnel(client_id=1, type_marche=1),
        ProfilProfessionnel(client_id=2, type_marche=2),
        ProfilProfessionnel(client_id=3, type_marche=1),
        ProfilTypeDiffusion(client_id=1, type_diffusion_id=1),
        ProfilTypeDiffusion(client_id=1, type_diffusion_id=2),
        ProfilTypeDiffusion(client_id=2, type_diffusion_id=1),
        ProfilTypeDiffusion(client_id=3, type_diffusion_id=2),
        ConfigurationRcs(
            client_id=1, logiciel_programmation="Zetta", logiciel_diffusion="Zetta",
            logiciel_planification="GSelector", streaming_provider="Infomaniak",
        ),
        ConfigurationRcs(client_id=2, logiciel_programmation="Zetta", logiciel_diffusion="WinMedia"),
        ConfigurationRcs(
            client_id=3, logiciel_programmation="WinMedia", logiciel_diffusion="WinMedia",
            logiciel_planification="GSelector", streaming_provider="",
        ),
        ConfigurationRcs(client_id=4, logiciel_programmation="Zetta"),
        ConfigurationRcs(client_id=5, logiciel_programmation="Zetta"),
        Audience(client_id=1, vague_id=1, audience=1000),
        Audience(client_id=1, vague_id=2, audience=1200),
        Audience(client_id=3, vague_id=1, audience=5000),
        Audience(client_id=3, vague_id=3, audience=800),
        Audience(client_id=4, vague_id=1, audience=400),
        Audience(client_id=5, vague_id=2, audience=300),
        Contact(client_id=1, nom="Durand", est_contact_principal=True),
        Contact(client_id=1, nom="Martin", est_contact_principal=False),
        Contact(client_id=2, nom="Petit", est_contact_principal=False),
    ])
    db.commit()


@pytest.fixture()
def engine():
    eng = create_db_engine("sqlite://")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine):
    session = Session(bind=engine, autoflush=False)
    seed(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(engine, db):
    from crm_radio.api.main import create_app

    app = create_app(engine=engine)
    with TestClient(app) as c:
        yield c
