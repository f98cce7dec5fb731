from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base


class Selection(Base):
    __tablename__ = "selections"
    __table_args__ = (UniqueConstraint("student_id", "pack_id", name="uq_selection_student_pack"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    pack_id = Column(Integer, ForeignKey("elective_packs.id"), nullable=False, index=True)
    status = Column(String, default="pending")  # pending/approved/rejected
    statement_path = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    pack = relationship("ElectivePack", back_populates="selections")
    student = relationship("Profile")
    items = relationship("SelectionItem", back_populates="selection", cascade="all, delete-orphan")


class SelectionItem(Base):
    __tablename__ = "selection_items"

    id = Column(Integer, primary_key=True, index=True)
    selection_id = Column(Integer, ForeignKey("selections.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=True)
    university_id = Column(Integer, ForeignKey("universities.id"), nullable=True)

    selection = relationship("Selection", back_populates="items")
    course = relationship("Course")
    university = relationship("University")
