"""
EduConnect client - session, signup/payment workflow and role dashboards
"""

from educonnect.api_client import EduConnectAPIClient
from educonnect.auth import AuthManager
from educonnect.config import ClientConfig
from educonnect.navigation import Navigator
from educonnect.session import Session, SessionContext
from educonnect.storage import PersistedStore
from educonnect.workflow import PaymentWorkflow, SignupWorkflow, StepResult

__version__ = "1.0.0"

__all__ = [
    "AuthManager",
    "ClientConfig",
    "EduConnectAPIClient",
    "Navigator",
    "PaymentWorkflow",
    "PersistedStore",
    "Session",
    "SessionContext",
    "SignupWorkflow",
    "StepResult",
]
