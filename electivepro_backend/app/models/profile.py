from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    hashed_password = Column(String, nullable=True)  # null until an invited user sets one
    full_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="student")
    is_active = Column(Boolean, default=True)
    degree_id = Column(Integer, ForeignKey("degrees.id"), nullable=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True)
    program_id = Column(Integer, ForeignKey("programs.id"), nullable=True)
    student_number = Column(String, nullable=True)
    academic_year = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    institution = relationship("Institution")
    degree = relationship("Degree")
    group = relationship("Group")
    program = relationship("Program")
