from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base


class ElectivePack(Base):
    __tablename__ = "elective_packs"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=False, index=True)
    kind = Column(String, nullable=False)  # course/exchange
    name = Column(String, nullable=False)
    name_ru = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    status = Column(String, default="draft")  # draft/published/closed/archived
    deadline = Column(DateTime, nullable=False)
    max_selections = Column(Integer, nullable=False, default=1)
    template_url = Column(String, nullable=True)  # syllabus or statement template
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    courses = relationship("PackCourse", back_populates="pack", cascade="all, delete-orphan")
    universities = relationship("PackUniversity", back_populates="pack", cascade="all, delete-orphan")
    selections = relationship("Selection", back_populates="pack", cascade="all, delete-orphan")


class PackCourse(Base):
    __tablename__ = "pack_courses"

    id = Column(Integer, primary_key=True, index=True)
    pack_id = Column(Integer, ForeignKey("elective_packs.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)

    pack = relationship("ElectivePack", back_populates="courses")
    course = relationship("Course")


class PackUniversity(Base):
    __tablename__ = "pack_universities"

    id = Column(Integer, primary_key=True, index=True)
    pack_id = Column(Integer, ForeignKey("elective_packs.id"), nullable=False, index=True)
    university_id = Column(Integer, ForeignKey("universities.id"), nullable=False)

    pack = relationship("ElectivePack", back_populates="universities")
    university = relationship("University")
