"""
Dashboard controller base

A dashboard is a fixed set of independent sections. mount() loads all of
them concurrently; each section ends up either with data or with an error
message, and one failing section never blocks the others.

Mutations are fire-and-refresh: after the backend accepts a change, the
affected section is fetched again instead of being patched locally.

A 401/403 from any request clears the session and navigates to the
role's login screen. Results that arrive after unmount() are dropped.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from educonnect.api_client import EduConnectAPIClient
from educonnect.exceptions import EduConnectError, SessionExpired
from educonnect.logging_config import get_logger
from educonnect.models import Role
from educonnect.navigation import Navigator
from educonnect.session import Session, SessionContext
from educonnect.workflow import StepResult

logger = get_logger("dashboard")


MAX_NOTIFICATIONS = 20


@dataclass
class Section:
    """One independently loaded part of a dashboard"""
    name: str
    data: Any = None
    error: Optional[str] = None
    loaded: bool = False

    @property
    def items(self) -> List[Any]:
        return self.data if isinstance(self.data, list) else []


@dataclass
class Notification:
    message: str
    time: str = field(default_factory=lambda: datetime.now().strftime("%H:%M:%S"))


class DashboardController:
    """Shared mount/refresh/mutate machinery for the role dashboards"""

    role: Role = Role.STUDENT
    section_names: Tuple[str, ...] = ()

    def __init__(self, client: EduConnectAPIClient, session: SessionContext, navigator: Navigator):
        self.client = client
        self.session = session
        self.navigator = navigator
        self.sections: Dict[str, Section] = {name: Section(name) for name in self.section_names}
        self.notifications: List[Notification] = []
        self.active = False
        self.expired = False
        self.identity: Optional[Session] = None

    # ==================== Lifecycle ====================

    def _fetcher(self, name: str) -> Callable[[], Awaitable[Any]]:
        return getattr(self, f"fetch_{name}")

    async def mount(self) -> bool:
        """Load every section; False when there is no session to load with"""
        self.identity = self.session.current()
        if self.identity is None or self.identity.role != self.role:
            self.navigator.navigate(self.role.login_path)
            return False

        self.active = True
        self.expired = False
        await asyncio.gather(*(self.refresh(name) for name in self.section_names))
        if self.active:
            self.on_loaded()
        return self.active

    def unmount(self) -> None:
        self.active = False

    def on_loaded(self) -> None:
        """Hook run after the initial load"""

    @property
    def user_id(self) -> str:
        return self.identity.user_id if self.identity else ""

    # ==================== Sections ====================

    async def refresh(self, name: str) -> Section:
        """Fetch one section again"""
        section = self.sections[name]
        try:
            data = await self._fetcher(name)()
        except SessionExpired:
            self._expire()
            return section
        except EduConnectError as e:
            if self.active:
                logger.warning(f"{self.role.value} dashboard: {name} failed: {e.message}")
                section.error = e.message
                section.data = []
                section.loaded = True
            return section

        if self.active:
            section.data = data
            section.error = None
            section.loaded = True
        return section

    def _expire(self) -> None:
        if not self.active:
            return
        self.active = False
        self.expired = True
        logger.warning(f"{self.role.value} session rejected by backend; signing out")
        self.session.clear()
        self.navigator.navigate(self.role.login_path)

    # ==================== Mutations ====================

    async def mutate(self, action: Callable[[], Awaitable[str]], refresh: Tuple[str, ...],
                     success_note: str) -> StepResult:
        """Run a write, then re-fetch the sections it affects"""
        if not self.active:
            return StepResult(ok=False, message="Dashboard is not loaded.")
        try:
            message = await action()
        except SessionExpired:
            self._expire()
            return StepResult(ok=False, message="Your session has expired. Please log in again.")
        except EduConnectError as e:
            logger.warning(f"{self.role.value} action failed: {e.message}")
            return StepResult(ok=False, message=e.message)

        await asyncio.gather(*(self.refresh(name) for name in refresh))
        self.notify(success_note)
        return StepResult(ok=True, message=message or success_note)

    # ==================== Notifications ====================

    def notify(self, message: str) -> None:
        self.notifications.insert(0, Notification(message))
        del self.notifications[MAX_NOTIFICATIONS:]

    def logout(self) -> None:
        self.unmount()
        self.session.clear()
        self.navigator.navigate(self.role.login_path)
