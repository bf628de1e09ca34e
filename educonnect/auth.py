"""
EduConnect Authentication
=========================

    login             Student / teacher email + password
    qao_access        Quality Assurance Officer access code
    admin_login       Administrator email + password
    forget_password   Request a reset link
    reset_password    Set a new password from a reset token
    status            Current session and profile
    logout            Forget the stored session

Every method returns a StepResult and never raises for validation,
network or server failures; the message is meant for the user.
"""

from typing import Any, Dict, Optional

from educonnect import navigation
from educonnect.api_client import EduConnectAPIClient, normalize_user
from educonnect.exceptions import EduConnectError, MissingUserData, ValidationFailed
from educonnect.logging_config import get_logger
from educonnect.models import Role
from educonnect.navigation import Navigator
from educonnect.session import SessionContext
from educonnect.workflow import StepResult

logger = get_logger("auth")


PASSWORD_ROLES = (Role.STUDENT, Role.TEACHER)


def _require(value: Optional[str], message: str, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationFailed(message, field=field)
    return value


class AuthManager:
    """Login, logout and password recovery for every role"""

    def __init__(self, client: EduConnectAPIClient, session: SessionContext, navigator: Navigator):
        self.client = client
        self.session = session
        self.navigator = navigator

    async def login(self, role: Role, email: str, password: str) -> StepResult:
        """Login as student or teacher and open that role's dashboard"""
        try:
            if role not in PASSWORD_ROLES:
                raise ValidationFailed(f"Use the {role.value} login for this account.", field="role")
            email = _require(email, "Please enter your email address.", "email")
            if not password:
                raise ValidationFailed("Please enter your password.", field="password")
            token, user = await self.client.login(role, email, password)
        except MissingUserData as e:
            logger.log_auth_event("login", False, user_email=email, reason="data missing")
            return StepResult(ok=False, message=e.message)
        except EduConnectError as e:
            logger.log_auth_event("login", False, user_email=email, reason=e.message)
            return StepResult(ok=False, message=e.message or "Login failed.")

        self.session.start(role, token, user)
        self.navigator.navigate(role.dashboard_path)
        logger.log_auth_event("login", True, user_email=email, role=role.value)
        return StepResult(ok=True, message=f"Welcome, {user.get('fullName') or user.get('name') or email}!",
                          data={"user": user})

    async def qao_access(self, code: str) -> StepResult:
        try:
            code = _require(code, "Please enter your QAO access code", "qaoCode")
            payload = await self.client.qao_access(code)
        except EduConnectError as e:
            logger.log_auth_event("qao_access", False, reason=e.message)
            return StepResult(ok=False, message=e.message)

        token = payload.get("token")
        if not payload.get("success") or not isinstance(token, str) or not token:
            message = payload.get("message") or "Access denied"
            logger.log_auth_event("qao_access", False, reason=message)
            return StepResult(ok=False, message=message)

        try:
            user = normalize_user(payload, Role.QAO)
        except MissingUserData:
            user = {}
        self.session.start(Role.QAO, token, user)
        self.navigator.navigate(navigation.QAO_DASHBOARD)
        logger.log_auth_event("qao_access", True)
        return StepResult(ok=True, message="Access granted")

    async def admin_login(self, email: str, password: str) -> StepResult:
        try:
            email = _require(email, "Please enter your email address.", "email")
            if not password:
                raise ValidationFailed("Please enter your password.", field="password")
            payload = await self.client.admin_login(email, password)
            token = payload.get("token")
            admin = payload.get("admin") if isinstance(payload.get("admin"), dict) else None
            user = normalize_user({"user": admin} if admin else payload, Role.ADMIN)
        except EduConnectError as e:
            logger.log_auth_event("admin_login", False, user_email=email, reason=e.message)
            return StepResult(ok=False, message=e.message or "Login failed. Try again.")

        if not isinstance(token, str) or not token:
            return StepResult(ok=False, message="Login response did not include a token.")

        self.session.start(Role.ADMIN, token, user)
        self.navigator.navigate(navigation.ADMIN_DASHBOARD)
        logger.log_auth_event("admin_login", True, user_email=email)
        return StepResult(ok=True, message="Welcome, admin!", data={"user": user})

    async def forget_password(self, role: Role, email: str) -> StepResult:
        try:
            email = _require(email, "Please enter your email address", "email")
            message = await self.client.forget_password(role, email)
        except EduConnectError as e:
            logger.log_auth_event("forget_password", False, user_email=email, reason=e.message)
            return StepResult(ok=False, message=e.message)

        logger.log_auth_event("forget_password", True, user_email=email)
        self.navigator.navigate(navigation.LOGIN)
        return StepResult(ok=True, message=message)

    async def reset_password(self, role: Role, token: str, new_password: str,
                             confirm_password: str) -> StepResult:
        try:
            if not new_password or not confirm_password:
                raise ValidationFailed("Please fill in all fields", field="newPassword")
            if new_password != confirm_password:
                raise ValidationFailed("Passwords do not match", field="confirmPassword")
            token = _require(token, "The reset link is missing its token.", "token")
            message = await self.client.reset_password(role, token, new_password)
        except EduConnectError as e:
            logger.log_auth_event("reset_password", False, reason=e.message)
            return StepResult(ok=False, message=e.message)

        logger.log_auth_event("reset_password", True)
        self.navigator.navigate(navigation.LOGIN)
        return StepResult(ok=True, message=message)

    def status(self) -> Dict[str, Any]:
        """Current session and cached profile"""
        session = self.session.current()
        return {"session": session, "user": self.session.user() if session else {}}

    def logout(self) -> StepResult:
        session = self.session.current()
        self.session.clear()
        self.navigator.navigate(session.role.login_path if session else navigation.LOGIN)
        logger.log_auth_event("logout", True)
        return StepResult(ok=True, message="Logged out successfully")
