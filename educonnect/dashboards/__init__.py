"""
Role dashboards
"""

from educonnect.dashboards.base import DashboardController, Notification, Section
from educonnect.dashboards.qao import QaoDashboard
from educonnect.dashboards.student import StudentDashboard
from educonnect.dashboards.teacher import TeacherDashboard
from educonnect.models import Role

DASHBOARDS = {
    Role.STUDENT: StudentDashboard,
    Role.TEACHER: TeacherDashboard,
    Role.QAO: QaoDashboard,
}

__all__ = [
    "DASHBOARDS",
    "DashboardController",
    "Notification",
    "QaoDashboard",
    "Section",
    "StudentDashboard",
    "TeacherDashboard",
]
