from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=False, index=True)
    degree_id = Column(Integer, ForeignKey("degrees.id"), nullable=True)
    program_id = Column(Integer, ForeignKey("programs.id"), nullable=True)
    name = Column(String, nullable=False)
    academic_year = Column(String, nullable=True)  # e.g., "2024"
    status = Column(String, default="active")
    created_at = Column(DateTime, default=datetime.utcnow)

    degree = relationship("Degree")
    program = relationship("Program")
