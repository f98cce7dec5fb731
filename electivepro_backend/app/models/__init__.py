from app.models.base import Base
from app.models.course import Course
from app.models.degree import Degree
from app.models.group import Group
from app.models.institution import Institution
from app.models.pack import ElectivePack, PackCourse, PackUniversity
from app.models.profile import Profile
from app.models.program import Program
from app.models.selection import Selection, SelectionItem
from app.models.university import University

__all__ = [
    "Base",
    "Course",
    "Degree",
    "ElectivePack",
    "Group",
    "Institution",
    "PackCourse",
    "PackUniversity",
    "Profile",
    "Program",
    "Selection",
    "SelectionItem",
    "University",
]
