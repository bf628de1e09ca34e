"""
Signup -> Payment workflow
==========================

Two state machines that take a new account from the registration form to
a submitted payment proof:

    SignupWorkflow
        EDITING --select_grade--> SUBJECTS_LOADING --ok--> SUBJECTS_READY
                                                  \\--error--> EDITING (error set)
        SUBJECTS_READY --submit--> SUBMITTING --ok--> SUCCEEDED
                                             \\--error--> FAILED (draft kept)

    PaymentWorkflow
        READY --submit--> UPLOADING --ok--> SUBMITTED (drafts cleared, redirect)
                                   \\--error--> READY (draft kept)

Every mutation of the draft is written to the store, so a restarted client
resumes where the user stopped. No step raises on a network failure: the
error is recorded on the workflow and returned in the StepResult, and the
same step can be run again.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import aiofiles

from educonnect import navigation
from educonnect.api_client import EduConnectAPIClient, normalize_user, package_key
from educonnect.config import ClientConfig
from educonnect.exceptions import EduConnectError, SessionExpired, ValidationFailed
from educonnect.logging_config import get_logger
from educonnect.models import PaymentDraft, PaymentRecord, Role, SignupDraft, Subject
from educonnect.navigation import Navigator
from educonnect.session import SessionContext

logger = get_logger("workflow")


MIN_STUDENT_SUBJECTS = 2
MAX_STUDENT_SUBJECTS = 3

SCREENSHOT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


class SignupState(str, Enum):
    EDITING = "editing"
    SUBJECTS_LOADING = "subjects_loading"
    SUBJECTS_READY = "subjects_ready"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PaymentState(str, Enum):
    READY = "ready"
    UPLOADING = "uploading"
    SUBMITTED = "submitted"


@dataclass
class StepResult:
    """Outcome of one user action"""
    ok: bool
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)


def compute_total(subjects: Iterable[Subject], selected_ids: Iterable[str]) -> float:
    """Sum of prices of the selected subjects that are actually known"""
    selected = set(selected_ids)
    return round(sum(s.price for s in subjects if s.id in selected), 2)


def prune_selection(subjects: Iterable[Subject], selected_ids: Iterable[str]) -> List[str]:
    """Keep only ids present in subjects, preserving selection order"""
    known = {s.id for s in subjects}
    pruned: List[str] = []
    for subject_id in selected_ids:
        if subject_id in known and subject_id not in pruned:
            pruned.append(subject_id)
    return pruned


def _session_expired(session: SessionContext, navigator: Navigator, role: Role) -> None:
    session.clear()
    navigator.navigate(role.login_path)


# =============================================================================
# Signup
# =============================================================================

class SignupWorkflow:
    """Registration form with dependent subject list and running total"""

    FIELDS = ("full_name", "email", "phone", "password", "curriculum", "duration")

    def __init__(self, client: EduConnectAPIClient, session: SessionContext,
                 navigator: Navigator, role: Role = Role.STUDENT, resume: bool = True):
        self.client = client
        self.session = session
        self.navigator = navigator

        draft = session.load_signup_draft() if resume else None
        if draft is None or draft.role != role:
            draft = SignupDraft(role=role)
        self.draft = draft

        self.state = SignupState.EDITING
        self.subjects: List[Subject] = []
        self.error: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self.payment_draft: Optional[PaymentDraft] = None
        self._fetch_seq = 0

        self._persist()

    # ==================== State helpers ====================

    def _set_state(self, state: SignupState) -> None:
        if state != self.state:
            logger.log_transition("signup", self.state.value, state.value)
        self.state = state

    def _persist(self) -> None:
        self.session.save_signup_draft(self.draft)

    def _recompute(self) -> None:
        self.draft.selected_subject_ids = prune_selection(self.subjects, self.draft.selected_subject_ids)
        self.draft.total_amount = compute_total(self.subjects, self.draft.selected_subject_ids)

    @property
    def total_amount(self) -> float:
        return compute_total(self.subjects, self.draft.selected_subject_ids)

    @property
    def selected_subjects(self) -> List[Subject]:
        by_id = {s.id: s for s in self.subjects}
        return [by_id[i] for i in self.draft.selected_subject_ids if i in by_id]

    async def restore(self) -> StepResult:
        """Reload subjects for a resumed draft so its selection can be checked"""
        if self.draft.package and self.draft.grade:
            return await self.select_grade(self.draft.grade)
        return StepResult(ok=True)

    # ==================== Editing ====================

    def update(self, **fields: str) -> None:
        """Set plain form fields (name, email, phone, password, curriculum, duration)"""
        for name, value in fields.items():
            if name not in self.FIELDS:
                raise ValueError(f"Unknown signup field: {name}")
            setattr(self.draft, name, (value or "").strip() if name != "password" else (value or ""))
        self._persist()

    async def select_package(self, package: str) -> StepResult:
        """Change package; reloads subjects when a grade is already chosen"""
        self.draft.package = package_key(package)
        self._persist()
        if self.draft.grade:
            return await self.select_grade(self.draft.grade)
        return StepResult(ok=True)

    async def select_grade(self, grade: str) -> StepResult:
        """Choose a grade and load the subjects offered for (package, grade)"""
        grade = (grade or "").strip()
        self.draft.grade = grade
        self.error = None
        self._fetch_seq += 1
        seq = self._fetch_seq
        self._persist()

        if not grade:
            self.subjects = []
            self._recompute()
            self._persist()
            self._set_state(SignupState.EDITING)
            return StepResult(ok=False, message="Please choose a grade.")

        if not self.draft.package:
            self.subjects = []
            self._recompute()
            self._persist()
            self._set_state(SignupState.EDITING)
            self.error = "Please choose a package first."
            return StepResult(ok=False, message=self.error)

        self._set_state(SignupState.SUBJECTS_LOADING)

        try:
            subjects = await self.client.subjects_by_package(self.draft.package, grade)
        except EduConnectError as e:
            if seq != self._fetch_seq:
                return StepResult(ok=False, message="Superseded by a newer selection.")
            logger.warning(f"Subject fetch failed for {self.draft.package}/{grade}: {e.message}")
            self.subjects = []
            self._recompute()
            self._persist()
            self.error = e.message
            self._set_state(SignupState.EDITING)
            return StepResult(ok=False, message=e.message)

        if seq != self._fetch_seq:
            # A later grade/package selection owns the subject list now
            return StepResult(ok=False, message="Superseded by a newer selection.")

        self.subjects = subjects
        self._recompute()
        self._persist()
        self._set_state(SignupState.SUBJECTS_READY)
        return StepResult(ok=True, data={"subjects": [s.to_dict() for s in subjects]})

    def set_subjects(self, subject_ids: Iterable[str]) -> None:
        """Replace the selection; ids not in the loaded list are dropped"""
        self.draft.selected_subject_ids = [str(i) for i in subject_ids]
        self._recompute()
        self._persist()

    def toggle_subject(self, subject_id: str) -> None:
        ids = list(self.draft.selected_subject_ids)
        if subject_id in ids:
            ids.remove(subject_id)
        else:
            ids.append(subject_id)
        self.set_subjects(ids)

    # ==================== Submission ====================

    def validate(self) -> List[str]:
        """Reasons submission is blocked; empty when it is allowed"""
        problems = []
        if not self.draft.full_name:
            problems.append("Full name is required.")
        if not self.draft.email or "@" not in self.draft.email:
            problems.append("A valid email is required.")
        if not self.draft.password:
            problems.append("Password is required.")
        if self.state not in (SignupState.SUBJECTS_READY, SignupState.FAILED):
            problems.append("Choose a grade and wait for its subjects to load.")

        count = len(self.draft.selected_subject_ids)
        if self.draft.role == Role.STUDENT and not (MIN_STUDENT_SUBJECTS <= count <= MAX_STUDENT_SUBJECTS):
            problems.append(
                f"Select between {MIN_STUDENT_SUBJECTS} and {MAX_STUDENT_SUBJECTS} subjects "
                f"({count} selected)."
            )
        return problems

    @property
    def can_submit(self) -> bool:
        return not self.validate()

    async def submit(self) -> StepResult:
        """Register the account and hand off to the payment step"""
        problems = self.validate()
        if problems:
            self.error = problems[0]
            return StepResult(ok=False, message=self.error, data={"problems": problems})

        self._recompute()
        self._persist()
        self.error = None
        self._set_state(SignupState.SUBMITTING)

        names = [s.name for s in self.selected_subjects]
        try:
            payload = await self.client.signup(self.draft, names)
            user = normalize_user(payload, self.draft.role)
        except EduConnectError as e:
            logger.warning(f"Signup failed: {e.message}")
            self.error = e.message
            self._set_state(SignupState.FAILED)
            return StepResult(ok=False, message=e.message)

        self.user = user
        token = payload.get("token")
        if isinstance(token, str) and token:
            self.session.start(self.draft.role, token, user)
        else:
            self.session.save_user(user)

        self.payment_draft = PaymentDraft(
            user=user,
            curriculum=self.draft.curriculum,
            grade=self.draft.grade,
            package=self.draft.package,
            total_amount=self.draft.total_amount,
            subjects=names,
            duration=self.draft.duration,
        )
        self.session.save_payment_draft(self.payment_draft)
        self._set_state(SignupState.SUCCEEDED)

        if self.draft.role == Role.STUDENT:
            self.navigator.navigate(navigation.PAYMENT, self.payment_draft.to_dict())
        else:
            self.navigator.navigate(Role.TEACHER.login_path)

        logger.log_auth_event("signup", True, user_email=self.draft.email)
        return StepResult(ok=True, message="Registration successful!", data={"user": user})


# =============================================================================
# Payment proof
# =============================================================================

class PaymentWorkflow:
    """Upload of a mobile-money payment screenshot"""

    def __init__(self, client: EduConnectAPIClient, session: SessionContext,
                 navigator: Navigator, config: ClientConfig,
                 draft: Optional[PaymentDraft] = None):
        self.client = client
        self.session = session
        self.navigator = navigator
        self.config = config

        self.draft = draft or session.load_payment_draft()
        if self.draft is not None:
            self.session.save_payment_draft(self.draft)

        self.state = PaymentState.READY
        self.attachment: Optional[Path] = None
        self.message: str = ""
        self.record: Optional[PaymentRecord] = None

    def attach(self, path: str) -> None:
        self.attachment = Path(path).expanduser() if path else None

    def _check_attachment(self) -> Path:
        if self.attachment is None:
            raise ValidationFailed("Please upload your payment screenshot first.", field="screenshot")
        if not self.attachment.is_file() or self.attachment.stat().st_size == 0:
            raise ValidationFailed(
                f"Screenshot '{self.attachment}' is missing or empty.", field="screenshot"
            )
        return self.attachment

    def build_fields(self, transaction_date: Optional[str] = None) -> Dict[str, str]:
        """Multipart text fields for the submission"""
        draft = self.draft
        transaction_date = transaction_date or datetime.now(timezone.utc).isoformat()
        stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        amount = draft.total_amount
        return {
            "studentId": draft.student_id,
            "studentName": draft.student_name,
            "curriculum": draft.curriculum,
            "package": draft.package,
            "grade": draft.grade,
            "subjects": ",".join(draft.subjects),
            "amount": str(int(amount)) if float(amount).is_integer() else str(amount),
            "duration": draft.duration,
            "referenceName": f"{draft.student_name}-{stamp}",
            "transactionDate": transaction_date,
        }

    async def submit(self) -> StepResult:
        """Upload the proof; on success clear drafts and move to the dashboard"""
        if self.draft is None:
            self.message = "No pending registration to pay for."
            return StepResult(ok=False, message=self.message)

        try:
            path = self._check_attachment()
        except ValidationFailed as e:
            self.message = e.message
            return StepResult(ok=False, message=e.message)

        self.state = PaymentState.UPLOADING
        fields = self.build_fields()

        try:
            async with aiofiles.open(path, "rb") as f:
                content = await f.read()
        except OSError as e:
            self.state = PaymentState.READY
            self.message = f"Could not read screenshot: {e}"
            return StepResult(ok=False, message=self.message)

        content_type = SCREENSHOT_TYPES.get(path.suffix.lower(), "application/octet-stream")
        try:
            result = await self.client.submit_payment(fields, (path.name, content, content_type))
        except SessionExpired:
            self.state = PaymentState.READY
            _session_expired(self.session, self.navigator, Role.STUDENT)
            self.message = "Your session has expired. Please log in again."
            return StepResult(ok=False, message=self.message)
        except EduConnectError as e:
            logger.warning(f"Payment submission failed: {e.message}")
            self.state = PaymentState.READY
            self.message = e.message
            return StepResult(ok=False, message=e.message)

        payment = result.get("payment") if isinstance(result.get("payment"), dict) else {}
        self.record = PaymentRecord.from_dict({
            "studentId": fields["studentId"],
            "amount": fields["amount"],
            "package": fields["package"],
            "subjects": list(self.draft.subjects),
            "screenshot": path.name,
            "transactionDate": fields["transactionDate"],
            "duration": fields["duration"],
            **payment,
        })
        self.session.record_last_payment(payment or self.record.to_dict())
        self.session.clear_drafts()
        self.state = PaymentState.SUBMITTED
        self.message = "Payment submitted successfully!"
        logger.info(f"Payment submitted for student {fields['studentId']}")

        await self.navigator.navigate_after(
            navigation.STUDENT_DASHBOARD, self.config.redirect_delay, {"user": self.draft.user}
        )
        return StepResult(ok=True, message=self.message, data={"payment": self.record.to_dict()})
