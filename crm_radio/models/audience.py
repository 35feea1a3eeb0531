from sqlalchemy import Column, Integer, ForeignKey
from crm_radio.database import Base


class Audience(Base):
    __tablename__ = "audiences"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    vague_id = Column(Integer, ForeignKey("ref_vagues.id"), nullable=False)
    audience = Column(Integer, nullable=True)
