"""
EduConnect API Client
=====================

Async client for the EduConnect REST backend.

- Resolves (role, intent) to a backend path
- Attaches "Authorization: Bearer <token>" from the SessionContext
- Folds the backend's response shapes into one internal shape:
      {"user": {...}} / {"data": {...}}  ->  {"id": ..., "role": ..., ...}
      [...] / {"data": [...]} / {"teachers": [...]}  ->  [...]
- Raises NetworkError, ServerError, SessionExpired or ProtocolError;
  callers never inspect httpx responses themselves.
"""

import re
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from educonnect.config import ClientConfig
from educonnect.exceptions import (
    MissingUserData,
    NetworkError,
    ProtocolError,
    ServerError,
    SessionExpired,
    ValidationFailed,
)
from educonnect.logging_config import get_logger
from educonnect.models import PaymentRecord, Role, Subject, SignupDraft
from educonnect.session import SessionContext

logger = get_logger("api")


ENDPOINTS: Dict[str, Dict[Role, str]] = {
    # Auth
    "login": {
        Role.STUDENT: "/api/students/login",
        Role.TEACHER: "/api/teachers/login",
        Role.QAO: "/api/qao/access",
        Role.ADMIN: "/api/admin/login",
    },
    "forget_password": {
        Role.STUDENT: "/api/students/forget-password",
        Role.TEACHER: "/api/teachers/forget-password",
    },
    "reset_password": {
        Role.STUDENT: "/api/students/reset-password/{token}",
        Role.TEACHER: "/api/teachers/reset-password/{token}",
    },
    "signup": {
        Role.STUDENT: "/api/auth/signup",
        Role.TEACHER: "/api/auth/signup",
    },
    # Reads
    "profile": {Role.STUDENT: "/api/students/me"},
    "subjects": {
        Role.STUDENT: "/api/students/{id}/subjects",
        Role.TEACHER: "/api/teachers/{id}/subjects",
    },
    "broadcasts": {
        Role.STUDENT: "/api/students/broadcasts/{id}",
        Role.TEACHER: "/api/teachers/{id}/broadcasts",
    },
    "assignments": {
        Role.STUDENT: "/api/students/assignments/{id}",
        Role.TEACHER: "/api/teachers/{id}/assignments",
    },
    "payments": {Role.STUDENT: "/api/students/payments/{id}"},
    "students": {Role.TEACHER: "/api/teachers/{id}/students"},
    "messages": {
        Role.TEACHER: "/api/messages/teacher/{id}",
        Role.QAO: "/api/qao/inbox",
    },
    "teachers": {Role.QAO: "/api/qao/teachers"},
    "resources": {Role.QAO: "/api/qao/resources"},
    "kpis": {Role.QAO: "/api/qao/kpis"},
    "notifications": {Role.QAO: "/api/qao/notifications"},
    # Writes
    "submit_payment": {Role.STUDENT: "/api/students/payments/submit"},
    "submit_assignment": {Role.STUDENT: "/api/students/assignments/submit/{id}"},
    "send_broadcast": {Role.TEACHER: "/api/teachers/broadcast"},
    "post_assignment": {Role.TEACHER: "/api/teachers/assignments"},
    "reply": {Role.TEACHER: "/api/messages/reply/{id}"},
    "review_resource": {Role.QAO: "/api/qao/resources/{id}"},
    "send_message": {Role.QAO: "/api/messages"},
}

CONTACT_PATH = "/api/contact"


def resolve_path(role: Role, intent: str, **params: Any) -> str:
    """Backend path for intent as performed by role"""
    paths = ENDPOINTS.get(intent, {})
    template = paths.get(role)
    if template is None:
        raise ValidationFailed(f"'{intent}' is not available for the {role.value} role")
    return template.format(**{k: quote(str(v), safe="") for k, v in params.items()})


def package_key(package: str) -> str:
    """Canonical package key: "ges vc" / "ges_vc" / "GES-VC" -> "GES-VC" """
    return re.sub(r"[\s_]+", "-", (package or "").strip()).upper()


def subjects_path(package: str, grade: str) -> str:
    return (
        f"/api/subjects/by-package/{quote(package_key(package), safe='')}"
        f"?grade={quote(grade.strip(), safe='')}"
    )


# =============================================================================
# Response shape adapters
# =============================================================================

def normalize_user(payload: Any, role: Optional[Role] = None,
                   allow_bare: bool = False) -> Dict[str, Any]:
    """
    Fold {"user": {...}} or {"data": {...}} into {"id", "role", ...fields}.

    With allow_bare, an object that itself carries an _id is accepted too
    (the /me endpoint has returned both). Anything else is MissingUserData.
    """
    if not isinstance(payload, dict):
        raise MissingUserData(role.value if role else None)

    candidates = [payload.get("user"), payload.get("data")]
    if allow_bare:
        candidates.append(payload)

    for inner in candidates:
        if isinstance(inner, dict) and (inner.get("_id") or inner.get("id")):
            user = {k: v for k, v in inner.items() if k != "_id"}
            user["id"] = str(inner.get("_id") or inner.get("id"))
            parsed = Role.parse(inner.get("role"))
            user["role"] = (role or parsed or Role.STUDENT).value
            return user

    raise MissingUserData(role.value if role else None)


def unwrap_list(payload: Any, *keys: str) -> List[Any]:
    """Return the list inside payload; bare lists pass through"""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys + ("data",):
            value = payload.get(key)
            if isinstance(value, list):
                return value
        return []
    if payload is None:
        return []
    raise ProtocolError("Unexpected response format from server.")


def response_message(payload: Any, default: str) -> str:
    if isinstance(payload, dict) and isinstance(payload.get("message"), str) and payload["message"]:
        return payload["message"]
    return default


# =============================================================================
# Client
# =============================================================================

class EduConnectAPIClient:
    """Role-scoped client for the EduConnect backend"""

    def __init__(self, config: ClientConfig, session: SessionContext,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.session = session
        self.base_url = config.api_base_url.rstrip('/')
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _get_headers(self, role: Optional[Role], auth: bool) -> Tuple[Dict[str, str], bool]:
        headers = {"Accept": "application/json"}
        if auth:
            token = self.session.token_for(role)
            if token:
                headers["Authorization"] = f"Bearer {token}"
                return headers, True
        return headers, False

    async def _request(
        self,
        method: str,
        path: str,
        *,
        role: Optional[Role] = None,
        auth: bool = True,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body"""
        headers, authenticated = self._get_headers(role, auth)
        started = time.monotonic()

        try:
            response = await self._http.request(
                method, path, headers=headers, json=json, data=data, files=files
            )
        except httpx.RequestError as e:
            logger.log_request(method, path, 0, (time.monotonic() - started) * 1000, error=str(e))
            raise NetworkError(url=path) from e

        logger.log_request(method, path, response.status_code, (time.monotonic() - started) * 1000)

        if authenticated and response.status_code in (401, 403):
            raise SessionExpired(response.status_code, path)

        try:
            payload = response.json()
        except ValueError as e:
            raise ProtocolError(status_code=response.status_code) from e

        if not response.is_success:
            raise ServerError(
                response.status_code,
                response_message(payload, f"Request failed ({response.status_code})."),
                path,
            )

        return payload

    # ==================== Auth ====================

    async def login(self, role: Role, email: str, password: str) -> Tuple[str, Dict[str, Any]]:
        """POST credentials; returns (token, normalized user)"""
        payload = await self._request(
            "POST", resolve_path(role, "login"),
            auth=False, json={"email": email, "password": password},
        )
        user = normalize_user(payload, role)
        token = payload.get("token")
        if not isinstance(token, str) or not token:
            raise ProtocolError("Login response did not include a token.")
        return token, user

    async def qao_access(self, code: str) -> Dict[str, Any]:
        payload = await self._request(
            "POST", resolve_path(Role.QAO, "login"), auth=False, json={"qaoCode": code}
        )
        if not isinstance(payload, dict):
            raise ProtocolError()
        return payload

    async def admin_login(self, email: str, password: str) -> Dict[str, Any]:
        payload = await self._request(
            "POST", resolve_path(Role.ADMIN, "login"),
            auth=False, json={"email": email, "password": password},
        )
        if not isinstance(payload, dict):
            raise ProtocolError()
        return payload

    async def forget_password(self, role: Role, email: str) -> str:
        payload = await self._request(
            "POST", resolve_path(role, "forget_password"), auth=False, json={"email": email}
        )
        return response_message(payload, "Password reset link sent! Check your email.")

    async def reset_password(self, role: Role, token: str, new_password: str) -> str:
        payload = await self._request(
            "POST", resolve_path(role, "reset_password", token=token),
            auth=False, json={"newPassword": new_password},
        )
        return response_message(payload, "Password reset successful! You can now log in.")

    async def signup(self, draft: SignupDraft, subject_names: List[str]) -> Dict[str, Any]:
        """POST the registration draft; returns the raw payload"""
        body = {
            "fullName": draft.full_name,
            "email": draft.email,
            "phone": draft.phone,
            "password": draft.password,
            "role": draft.role.value,
            "curriculum": draft.curriculum,
            "package": draft.package,
            "grade": draft.grade,
            "duration": draft.duration,
            "subjects": list(draft.selected_subject_ids),
            "subjectNames": subject_names,
            "totalAmount": draft.total_amount,
        }
        return await self._request("POST", resolve_path(draft.role, "signup"), auth=False, json=body)

    # ==================== Subjects / Payments ====================

    async def subjects_by_package(self, package: str, grade: str) -> List[Subject]:
        payload = await self._request("GET", subjects_path(package, grade), auth=False)
        return [Subject.from_dict(s) for s in unwrap_list(payload, "subjects") if isinstance(s, dict)]

    async def submit_payment(self, fields: Dict[str, str],
                             screenshot: Tuple[str, bytes, str]) -> Dict[str, Any]:
        payload = await self._request(
            "POST", resolve_path(Role.STUDENT, "submit_payment"),
            role=Role.STUDENT, data=fields, files={"screenshot": screenshot},
        )
        return payload if isinstance(payload, dict) else {}

    # ==================== Student ====================

    async def student_me(self) -> Dict[str, Any]:
        payload = await self._request("GET", resolve_path(Role.STUDENT, "profile"), role=Role.STUDENT)
        return normalize_user(payload, Role.STUDENT, allow_bare=True)

    async def student_subjects(self, student_id: str) -> List[Subject]:
        payload = await self._request(
            "GET", resolve_path(Role.STUDENT, "subjects", id=student_id), role=Role.STUDENT
        )
        return [Subject.from_dict(s) for s in unwrap_list(payload, "subjects") if isinstance(s, dict)]

    async def student_broadcasts(self, student_id: str) -> List[Dict[str, Any]]:
        payload = await self._request(
            "GET", resolve_path(Role.STUDENT, "broadcasts", id=student_id), role=Role.STUDENT
        )
        return unwrap_list(payload, "broadcasts")

    async def student_payments(self, student_id: str) -> List[PaymentRecord]:
        payload = await self._request(
            "GET", resolve_path(Role.STUDENT, "payments", id=student_id), role=Role.STUDENT
        )
        return [PaymentRecord.from_dict(p) for p in unwrap_list(payload, "payments") if isinstance(p, dict)]

    async def student_assignments(self, student_id: str) -> List[Dict[str, Any]]:
        payload = await self._request(
            "GET", resolve_path(Role.STUDENT, "assignments", id=student_id), role=Role.STUDENT
        )
        return unwrap_list(payload, "assignments")

    async def submit_assignment(self, assignment_id: str, mode: str,
                                typed_answer: Optional[str] = None,
                                file: Optional[Tuple[str, bytes, str]] = None) -> str:
        files = {"file": file} if file is not None else None
        data = {"mode": mode}
        if typed_answer is not None:
            data["typedAnswer"] = typed_answer
        payload = await self._request(
            "POST", resolve_path(Role.STUDENT, "submit_assignment", id=assignment_id),
            role=Role.STUDENT, data=data, files=files,
        )
        return response_message(payload, "Assignment submitted!")

    # ==================== Teacher ====================

    async def teacher_list(self, intent: str, teacher_id: str) -> List[Any]:
        """GET one of the teacher's subjects/students/assignments/broadcasts/messages"""
        payload = await self._request(
            "GET", resolve_path(Role.TEACHER, intent, id=teacher_id), role=Role.TEACHER
        )
        return unwrap_list(payload, intent)

    async def send_broadcast(self, teacher_id: str, subject_id: str, message: str) -> str:
        payload = await self._request(
            "POST", resolve_path(Role.TEACHER, "send_broadcast"), role=Role.TEACHER,
            json={"teacherId": teacher_id, "subjectId": subject_id, "message": message},
        )
        return response_message(payload, "Broadcast sent")

    async def post_assignment(self, teacher_id: str, assignment: Dict[str, Any]) -> str:
        payload = await self._request(
            "POST", resolve_path(Role.TEACHER, "post_assignment"), role=Role.TEACHER,
            json={**assignment, "teacherId": teacher_id},
        )
        return response_message(payload, "Assignment posted")

    async def reply_to_message(self, message_id: str, teacher_id: str, reply: str) -> str:
        payload = await self._request(
            "POST", resolve_path(Role.TEACHER, "reply", id=message_id), role=Role.TEACHER,
            json={"reply": reply, "teacherId": teacher_id},
        )
        return response_message(payload, "Reply sent")

    # ==================== QAO ====================

    async def qao_list(self, intent: str) -> List[Any]:
        """GET one of the QAO's teachers/resources/kpis/messages/notifications"""
        payload = await self._request("GET", resolve_path(Role.QAO, intent), role=Role.QAO)
        return unwrap_list(payload, intent)

    async def review_resource(self, resource_id: str, approved: bool) -> str:
        payload = await self._request(
            "PUT", resolve_path(Role.QAO, "review_resource", id=resource_id), role=Role.QAO,
            json={"approved": approved},
        )
        return response_message(payload, "Resource updated")

    async def send_message(self, receiver: str, subject: str, message: str) -> str:
        payload = await self._request(
            "POST", resolve_path(Role.QAO, "send_message"), role=Role.QAO,
            json={
                "senderRole": "qao",
                "receiverRole": "teacher",
                "receiver": receiver,
                "subject": subject,
                "message": message,
            },
        )
        return response_message(payload, "Message sent successfully!")

    # ==================== Contact ====================

    async def send_contact(self, name: str, email: str, message: str) -> str:
        payload = await self._request(
            "POST", CONTACT_PATH, auth=False,
            json={"name": name, "email": email, "message": message},
        )
        return response_message(payload, "Message sent successfully!")
