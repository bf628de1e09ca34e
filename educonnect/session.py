"""
Session Context - the single owner of persisted session state

Auth flows, workflows and dashboard controllers receive a SessionContext
and go through it for every read or write of session keys; nothing else
touches those keys in the store directly.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from educonnect import storage
from educonnect.logging_config import get_logger, set_role, set_user_id
from educonnect.models import PaymentDraft, PaymentRecord, Role, SignupDraft
from educonnect.storage import PersistedStore

logger = get_logger("session")


TOKEN_KEYS = {
    Role.STUDENT: storage.TOKEN,
    Role.TEACHER: storage.TOKEN,
    Role.QAO: storage.QAO_TOKEN,
    Role.ADMIN: storage.ADMIN_TOKEN,
}

SESSION_KEYS = (
    storage.TOKEN,
    storage.USER_ID,
    storage.ROLE,
    storage.ADMIN_TOKEN,
    storage.QAO_TOKEN,
    storage.QAO_USER,
    storage.USER,
)


@dataclass(frozen=True)
class Session:
    """An authenticated identity"""
    token: str
    user_id: str
    role: Role


class SessionContext:
    """Reads and writes the session and draft entries of a PersistedStore"""

    def __init__(self, store: PersistedStore):
        self.store = store

    # ==================== Session ====================

    def current(self) -> Optional[Session]:
        """Return the stored session, or None if there is no usable one"""
        role = Role.parse(self.store.get(storage.ROLE))
        if role is None:
            return None
        token = self.store.get(TOKEN_KEYS[role])
        if not isinstance(token, str) or not token:
            return None
        user_id = self.store.get(storage.USER_ID)
        session = Session(token=token, user_id=str(user_id or ""), role=role)
        set_role(role.value)
        set_user_id(session.user_id)
        return session

    def is_authenticated(self, role: Optional[Role] = None) -> bool:
        session = self.current()
        if session is None:
            return False
        return role is None or session.role == role

    def token_for(self, role: Optional[Role] = None) -> Optional[str]:
        """Bearer token for role, or for the active session when role is None"""
        if role is None:
            session = self.current()
            return session.token if session else None
        token = self.store.get(TOKEN_KEYS[role])
        return token if isinstance(token, str) and token else None

    def start(self, role: Role, token: str, user: Optional[Dict[str, Any]] = None) -> Session:
        """Write a new session, replacing whatever was stored"""
        user = user or {}
        user_id = str(user.get("id") or "")

        self.store.clear(SESSION_KEYS)
        self.store.set(TOKEN_KEYS[role], token)
        self.store.set(storage.ROLE, role.value)
        if user_id:
            self.store.set(storage.USER_ID, user_id)
        if user:
            self.store.set(storage.QAO_USER if role == Role.QAO else storage.USER, user)

        set_role(role.value)
        set_user_id(user_id)
        logger.info(f"Session started for {role.value}", extra={"session_user": user_id})
        return Session(token=token, user_id=user_id, role=role)

    def clear(self) -> None:
        """Forget the session (logout or rejected token)"""
        self.store.clear(SESSION_KEYS)
        set_role("")
        set_user_id("")
        logger.info("Session cleared")

    def user(self) -> Dict[str, Any]:
        """Cached profile of the signed-in user"""
        session = self.current()
        key = storage.QAO_USER if session and session.role == Role.QAO else storage.USER
        return self.store.get_dict(key) or {}

    def save_user(self, user: Dict[str, Any]) -> None:
        self.store.set(storage.USER, user)

    # ==================== Drafts ====================

    def _payment_data(self) -> Dict[str, Any]:
        return self.store.get_dict(storage.PAYMENT_DATA) or {}

    def save_signup_draft(self, draft: SignupDraft) -> None:
        data = self._payment_data()
        data["signup"] = draft.to_dict()
        self.store.set(storage.PAYMENT_DATA, data)

    def load_signup_draft(self) -> Optional[SignupDraft]:
        data = self._payment_data().get("signup")
        return SignupDraft.from_dict(data) if isinstance(data, dict) else None

    def save_payment_draft(self, draft: PaymentDraft) -> None:
        data = self._payment_data()
        data["payment"] = draft.to_dict()
        self.store.set(storage.PAYMENT_DATA, data)

    def load_payment_draft(self) -> Optional[PaymentDraft]:
        data = self._payment_data().get("payment")
        return PaymentDraft.from_dict(data) if isinstance(data, dict) else None

    def clear_drafts(self) -> None:
        self.store.remove(storage.PAYMENT_DATA)

    def record_last_payment(self, payment: Dict[str, Any]) -> None:
        self.store.set(storage.LAST_PAYMENT, payment)

    def last_payment(self) -> Optional[PaymentRecord]:
        data = self.store.get_dict(storage.LAST_PAYMENT)
        return PaymentRecord.from_dict(data) if data else None
