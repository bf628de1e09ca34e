"""
Navigation - tracks which screen the client is on
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from educonnect.logging_config import get_logger

logger = get_logger("navigation")


LOGIN = "/login"
QAO_ACCESS = "/qao/access"
ADMIN_LOGIN = "/admin/login"
FORGET_PASSWORD = "/forget-password"
PAYMENT = "/payment"
STUDENT_DASHBOARD = "/student/dashboard"
TEACHER_DASHBOARD = "/teacher/dashboard"
QAO_DASHBOARD = "/qao/dashboard"
ADMIN_DASHBOARD = "/admin/dashboard"


@dataclass
class Route:
    path: str
    state: Dict[str, Any] = field(default_factory=dict)


class Navigator:
    """Records the current route and the history of visited routes"""

    def __init__(self, start: str = "/"):
        self.history: List[Route] = [Route(start)]

    @property
    def current(self) -> Route:
        return self.history[-1]

    @property
    def path(self) -> str:
        return self.current.path

    def navigate(self, path: str, state: Optional[Dict[str, Any]] = None) -> Route:
        route = Route(path, dict(state or {}))
        self.history.append(route)
        logger.debug(f"Navigate -> {path}")
        return route

    async def navigate_after(self, path: str, delay: float,
                             state: Optional[Dict[str, Any]] = None) -> Route:
        """Navigate once delay seconds have passed"""
        if delay > 0:
            await asyncio.sleep(delay)
        return self.navigate(path, state)
