"""
Quality Assurance Officer dashboard: teachers, resources, KPIs, inbox, notifications
"""

from typing import Any, Dict, List

from educonnect.dashboards.base import DashboardController
from educonnect.models import Role, record_id
from educonnect.workflow import StepResult


class QaoDashboard(DashboardController):
    role = Role.QAO
    section_names = ("teachers", "resources", "kpis", "messages", "notifications")

    async def fetch_teachers(self) -> List[Any]:
        return await self.client.qao_list("teachers")

    async def fetch_resources(self) -> List[Any]:
        return await self.client.qao_list("resources")

    async def fetch_kpis(self) -> List[Any]:
        return await self.client.qao_list("kpis")

    async def fetch_messages(self) -> List[Any]:
        return await self.client.qao_list("messages")

    async def fetch_notifications(self) -> List[Any]:
        return await self.client.qao_list("notifications")

    def items(self, name: str) -> List[Any]:
        return self.sections[name].items

    @property
    def pending_resources(self) -> List[Dict[str, Any]]:
        return [r for r in self.items("resources") if isinstance(r, dict) and not r.get("approved")]

    def teacher_name(self, teacher_id: str) -> str:
        for t in self.items("teachers"):
            if isinstance(t, dict) and record_id(t) == teacher_id:
                return t.get("fullName") or t.get("name") or teacher_id
        return teacher_id

    # ==================== Actions ====================

    async def review_resource(self, resource_id: str, approved: bool = True) -> StepResult:
        if not (resource_id or "").strip():
            return StepResult(ok=False, message="Choose a resource to review.")
        return await self.mutate(
            lambda: self.client.review_resource(resource_id.strip(), approved),
            refresh=("resources",),
            success_note="Resource approved" if approved else "Resource rejected",
        )

    async def send_message(self, receiver: str, subject: str, message: str) -> StepResult:
        if not all((v or "").strip() for v in (receiver, subject, message)):
            return StepResult(ok=False, message="Please fill in all fields.")
        return await self.mutate(
            lambda: self.client.send_message(receiver.strip(), subject.strip(), message.strip()),
            refresh=("messages",),
            success_note="Message sent",
        )
