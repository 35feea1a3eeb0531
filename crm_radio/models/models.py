from crm_radio.database import Base
from .client import Client, ClientService
from .contact import Contact
from .references import (
    RefEditeur,
    RefService,
    RefLogiciel,
    RefGroupement,
    RefTypeMarche,
    RefTypeDiffusion,
    RefPays,
    RefVague,
)
from .profil import ProfilProfessionnel, ProfilTypeDiffusion, ConfigurationRcs
from .audience import Audience


__all__ = [
    "Base",
    "Client",
    "ClientService",
    "Contact",
    "RefEditeur",
    "RefService",
    "RefLogiciel",
    "RefGroupement",
    "RefTypeMarche",
    "RefTypeDiffusion",
    "RefPays",
    "RefVague",
    "ProfilProfessionnel",
    "ProfilTypeDiffusion",
    "ConfigurationRcs",
    "Audience",
]
