from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=False, index=True)
    degree_id = Column(Integer, ForeignKey("degrees.id"), nullable=True)
    name = Column(String, nullable=False)
    name_ru = Column(String, nullable=True)
    code = Column(String, nullable=False, index=True)
    credits = Column(Integer, nullable=True)
    instructor = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    max_students = Column(Integer, nullable=True)
    status = Column(String, default="active")  # active/inactive/draft
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    degree = relationship("Degree")
