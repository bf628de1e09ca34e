"""
Student dashboard: profile, subjects, broadcasts, payments, assignments
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

from educonnect.dashboards.base import DashboardController
from educonnect.exceptions import ValidationFailed
from educonnect.models import PaymentRecord, Role, Subject
from educonnect.workflow import StepResult

SUBMISSION_MODES = ("typed", "file", "image")


class StudentDashboard(DashboardController):
    role = Role.STUDENT
    section_names = ("profile", "subjects", "broadcasts", "payments", "assignments")

    async def fetch_profile(self) -> Dict[str, Any]:
        return await self.client.student_me()

    async def fetch_subjects(self) -> List[Subject]:
        return await self.client.student_subjects(self.user_id)

    async def fetch_broadcasts(self) -> List[Dict[str, Any]]:
        return await self.client.student_broadcasts(self.user_id)

    async def fetch_payments(self) -> List[PaymentRecord]:
        return await self.client.student_payments(self.user_id)

    async def fetch_assignments(self) -> List[Dict[str, Any]]:
        return await self.client.student_assignments(self.user_id)

    def on_loaded(self) -> None:
        self.notify(f"Welcome back, {self.profile.get('fullName') or 'Student'}!")

    # ==================== View model ====================

    @property
    def profile(self) -> Dict[str, Any]:
        data = self.sections["profile"].data
        if isinstance(data, dict) and data:
            return data
        return self.session.user()

    @property
    def subjects(self) -> List[Subject]:
        return self.sections["subjects"].items

    @property
    def broadcasts(self) -> List[Dict[str, Any]]:
        return self.sections["broadcasts"].items

    @property
    def payments(self) -> List[PaymentRecord]:
        return self.sections["payments"].items

    @property
    def assignments(self) -> List[Dict[str, Any]]:
        return self.sections["assignments"].items

    @property
    def latest_payment(self) -> Optional[PaymentRecord]:
        return self.payments[-1] if self.payments else None

    @property
    def duration_display(self) -> str:
        latest = self.latest_payment
        if latest and latest.duration:
            return latest.duration
        return self.profile.get("studyDuration") or "N/A"

    # ==================== Actions ====================

    async def submit_assignment(self, assignment_id: str, mode: str, content: str) -> StepResult:
        """Submit a typed answer, or a file/image given by path"""
        try:
            if mode not in SUBMISSION_MODES:
                raise ValidationFailed(f"Unknown submission mode '{mode}'.", field="mode")
            if mode == "typed":
                typed = (content or "").strip()
                if not typed:
                    raise ValidationFailed("Please type your answer before submitting.", field="typedAnswer")
                upload = None
            else:
                typed = None
                upload = await self._read_upload(content)
        except ValidationFailed as e:
            return StepResult(ok=False, message=e.message)

        return await self.mutate(
            lambda: self.client.submit_assignment(assignment_id, mode, typed_answer=typed, file=upload),
            refresh=("assignments",),
            success_note="Assignment submitted",
        )

    async def _read_upload(self, path_str: str):
        path = Path(path_str or "").expanduser()
        if not path_str or not path.is_file() or path.stat().st_size == 0:
            raise ValidationFailed("Please choose a non-empty file to upload.", field="file")
        try:
            async with aiofiles.open(path, "rb") as f:
                content = await f.read()
        except OSError as e:
            raise ValidationFailed(f"Could not read {path.name}: {e}", field="file") from e
        return (path.name, content, "application/octet-stream")
