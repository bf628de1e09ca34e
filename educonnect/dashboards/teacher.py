"""
Teacher dashboard: subjects, students, assignments, broadcasts, messages
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from educonnect.dashboards.base import DashboardController
from educonnect.exceptions import ValidationFailed
from educonnect.models import Role
from educonnect.workflow import StepResult


def _when(value: Any) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return str(value)


class TeacherDashboard(DashboardController):
    role = Role.TEACHER
    section_names = ("subjects", "students", "assignments", "broadcasts", "messages")

    async def fetch_subjects(self) -> List[Any]:
        return await self.client.teacher_list("subjects", self.user_id)

    async def fetch_students(self) -> List[Any]:
        return await self.client.teacher_list("students", self.user_id)

    async def fetch_assignments(self) -> List[Any]:
        return await self.client.teacher_list("assignments", self.user_id)

    async def fetch_broadcasts(self) -> List[Any]:
        return await self.client.teacher_list("broadcasts", self.user_id)

    async def fetch_messages(self) -> List[Any]:
        return await self.client.teacher_list("messages", self.user_id)

    def on_loaded(self) -> None:
        user = self.session.user()
        self.notify(f"Welcome back, {user.get('fullName') or user.get('name') or 'Teacher'}!")

    # ==================== View model ====================

    def items(self, name: str) -> List[Any]:
        return self.sections[name].items

    @property
    def activities(self) -> List[Dict[str, str]]:
        """Broadcasts and messages as one feed"""
        feed = []
        for b in self.items("broadcasts"):
            if isinstance(b, dict):
                feed.append({
                    "type": "broadcast",
                    "subject": b.get("subjectName") or "General",
                    "message": b.get("message", ""),
                    "time": _when(b.get("createdAt")),
                })
        for m in self.items("messages"):
            if isinstance(m, dict):
                feed.append({
                    "type": "message",
                    "subject": m.get("subject") or "",
                    "message": m.get("content") or m.get("message", ""),
                    "time": _when(m.get("date") or m.get("createdAt")),
                })
        return feed

    # ==================== Actions ====================

    async def send_broadcast(self, subject_id: str, message: str) -> StepResult:
        if not (subject_id or "").strip() or not (message or "").strip():
            return StepResult(ok=False, message="Please complete all fields")
        return await self.mutate(
            lambda: self.client.send_broadcast(self.user_id, subject_id.strip(), message.strip()),
            refresh=("broadcasts",),
            success_note="Broadcast sent",
        )

    async def post_assignment(self, title: str, description: str, subject_id: str,
                              due_date: Optional[str] = None) -> StepResult:
        try:
            for value, name in ((title, "title"), (description, "description"), (subject_id, "subjectId")):
                if not (value or "").strip():
                    raise ValidationFailed("Complete all fields", field=name)
        except ValidationFailed as e:
            return StepResult(ok=False, message=e.message)

        assignment = {
            "title": title.strip(),
            "description": description.strip(),
            "subjectId": subject_id.strip(),
        }
        if due_date:
            assignment["dueDate"] = due_date
        return await self.mutate(
            lambda: self.client.post_assignment(self.user_id, assignment),
            refresh=("assignments",),
            success_note="Assignment posted",
        )

    async def reply(self, message_id: str, text: str) -> StepResult:
        if not (text or "").strip():
            return StepResult(ok=False, message="Reply cannot be empty.")
        return await self.mutate(
            lambda: self.client.reply_to_message(message_id, self.user_id, text.strip()),
            refresh=("messages",),
            success_note="Reply sent",
        )
