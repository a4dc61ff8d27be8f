# API endpoints
from . import advisers, auth, consultations, health, projects, students, subjects

__all__ = ["advisers", "auth", "consultations", "health", "projects", "students", "subjects"]
