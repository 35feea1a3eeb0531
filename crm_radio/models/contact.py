from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from crm_radio.database import Base


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    nom = Column(String(255), nullable=True)
    est_contact_principal = Column(Boolean, nullable=False, default=False)
