"""
Client-side data model

Backend records arrive as loosely shaped JSON; the from_dict helpers here
accept the field spellings the backend is known to use and fill the rest
with defaults.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(str, Enum):
    """Account roles"""
    STUDENT = "student"
    TEACHER = "teacher"
    QAO = "qao"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Any) -> Optional["Role"]:
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

    @property
    def login_path(self) -> str:
        return {
            Role.QAO: "/qao/access",
            Role.ADMIN: "/admin/login",
        }.get(self, "/login")

    @property
    def dashboard_path(self) -> str:
        return f"/{self.value}/dashboard"


class PaymentStatus(str, Enum):
    """Payment review states, set by the backend"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


def _price(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def record_id(item: Dict[str, Any]) -> str:
    """Backend ids come as _id (Mongo) or id"""
    return str(item.get("_id") or item.get("id") or "")


@dataclass(frozen=True)
class Subject:
    """A subject offered for a (curriculum, package, grade)"""
    id: str
    name: str
    price: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subject":
        return cls(
            id=record_id(data),
            name=data.get("name") or data.get("subjectName") or "",
            price=_price(data.get("price")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "price": self.price}


@dataclass
class SignupDraft:
    """Registration form state, persisted between runs until payment is submitted"""
    full_name: str = ""
    email: str = ""
    phone: str = ""
    password: str = ""
    role: Role = Role.STUDENT
    curriculum: str = ""
    package: str = ""
    grade: str = ""
    duration: str = ""
    selected_subject_ids: List[str] = field(default_factory=list)
    total_amount: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "password": self.password,
            "role": self.role.value,
            "curriculum": self.curriculum,
            "package": self.package,
            "grade": self.grade,
            "duration": self.duration,
            "selectedSubjectIds": list(self.selected_subject_ids),
            "totalAmount": self.total_amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignupDraft":
        ids = data.get("selectedSubjectIds") or []
        return cls(
            full_name=data.get("fullName", ""),
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            password=data.get("password", ""),
            role=Role.parse(data.get("role")) or Role.STUDENT,
            curriculum=data.get("curriculum", ""),
            package=data.get("package", ""),
            grade=data.get("grade", ""),
            duration=data.get("duration", ""),
            selected_subject_ids=[str(i) for i in ids] if isinstance(ids, list) else [],
            total_amount=_price(data.get("totalAmount")),
        )


@dataclass
class PaymentDraft:
    """What the payment step needs once signup has succeeded"""
    user: Dict[str, Any]
    curriculum: str = ""
    grade: str = ""
    package: str = ""
    total_amount: float = 0.0
    subjects: List[str] = field(default_factory=list)
    duration: str = ""

    @property
    def student_id(self) -> str:
        return str(self.user.get("id") or self.user.get("_id") or "")

    @property
    def student_name(self) -> str:
        return self.user.get("fullName") or self.user.get("name") or ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": self.user,
            "curriculum": self.curriculum,
            "grade": self.grade,
            "package": self.package,
            "totalAmount": self.total_amount,
            "subjects": list(self.subjects),
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentDraft":
        subjects = data.get("subjects") or []
        names = []
        if isinstance(subjects, list):
            for s in subjects:
                if isinstance(s, str):
                    names.append(s)
                elif isinstance(s, dict):
                    names.append(s.get("name") or s.get("subjectName") or "")
        user = data.get("user")
        return cls(
            user=user if isinstance(user, dict) else {},
            curriculum=data.get("curriculum", ""),
            grade=data.get("grade", ""),
            package=data.get("package", ""),
            total_amount=_price(data.get("totalAmount")),
            subjects=[n for n in names if n],
            duration=data.get("duration", ""),
        )


@dataclass
class PaymentRecord:
    """A submitted payment proof; status is owned by the backend"""
    student_id: str
    amount: float
    package: str = ""
    subjects: List[str] = field(default_factory=list)
    screenshot_ref: str = ""
    transaction_date: str = ""
    duration: str = ""
    status: PaymentStatus = PaymentStatus.PENDING

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentRecord":
        subjects = data.get("subjects") or []
        if isinstance(subjects, str):
            subjects = [s.strip() for s in subjects.split(",") if s.strip()]
        try:
            status = PaymentStatus(str(data.get("status", "pending")).lower())
        except ValueError:
            status = PaymentStatus.PENDING
        return cls(
            student_id=str(data.get("studentId") or ""),
            amount=_price(data.get("amount")),
            package=data.get("package") or "",
            subjects=[str(s) for s in subjects],
            screenshot_ref=data.get("screenshot") or data.get("screenshotRef") or "",
            transaction_date=data.get("transactionDate") or "",
            duration=data.get("duration") or "",
            status=status,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "studentId": self.student_id,
            "amount": self.amount,
            "package": self.package,
            "subjects": list(self.subjects),
            "screenshot": self.screenshot_ref,
            "transactionDate": self.transaction_date,
            "duration": self.duration,
            "status": self.status.value,
        }

    @property
    def transaction_day(self) -> str:
        """Date part of transaction_date for display"""
        if not self.transaction_date:
            return "N/A"
        try:
            return datetime.fromisoformat(self.transaction_date.replace("Z", "+00:00")).strftime("%Y-%m-%d")
        except ValueError:
            return self.transaction_date
