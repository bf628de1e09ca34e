"""
Help bot: frequently asked questions and the contact form
"""

import re
from dataclasses import dataclass
from typing import List

from educonnect.api_client import EduConnectAPIClient
from educonnect.exceptions import EduConnectError
from educonnect.logging_config import get_logger
from educonnect.workflow import StepResult

logger = get_logger("help_bot")


@dataclass(frozen=True)
class Faq:
    question: str
    answer: str


FAQS = [
    Faq("What is EduConnect all about?",
        "EduConnect is an educational platform designed to connect teachers and students "
        "for virtual after-school classes."),
    Faq("Who does EduConnect deal with?",
        "EduConnect exclusively serves parents or guardians aged 18 and over who wish to register "
        "their children for online after-school classes. Parents are advised to supervise their "
        "children during learning periods."),
    Faq("What student age is appropriate to register your ward for EduConnect?",
        "There is no age limit for students. However, all students must be of school-going age and "
        "currently enrolled in one of the classes available on our platform."),
    Faq("Is EduConnect a safe space for children?",
        "Sharing of personal information is strictly prohibited. Teachers are screened thoroughly "
        "and teacher-student chats are monitored and recorded to ensure safety."),
    Faq("Who do I contact if I have any issues regarding payments?",
        "Use the contact form to reach our team. We will respond via email within two business days. "
        "EduConnect will never ask for your personal information via phone or email."),
    Faq("If I forget my password, how do I recover my account?",
        "Run 'educonnect forgot-password' to receive a reset link by email."),
    Faq("What are some of the subjects treated by EduConnect?",
        "EduConnect currently offers two curricula: Cambridge and GES."),
    Faq("What grades are acceptable on EduConnect?",
        "Cambridge Curriculum: Stage 4-13 (including IGCSE & A-Level prep). "
        "GES Curriculum: Basic 4-SSS4 (including BECE, WASSCE & Remedial prep)."),
    Faq("What is the duration period for a chosen package?",
        "Each package has a specific duration, shown when you choose it."),
    Faq("Can a student register for more than one package?",
        "Yes, but we recommend focusing on one package at a time for best results."),
    Faq("How do I renew my package?",
        "You can renew your package from the payments section of your student dashboard."),
    Faq("Can I add a new subject to my existing package?",
        "Yes, you can add a new subject by making a new payment from your dashboard."),
    Faq("Can I switch packages?",
        "You can switch packages only when re-registering, not during an active package."),
    Faq("Can I remove a subject from my package when re-registering?",
        "Yes, you can remove a subject when re-registering."),
]


def search_faqs(query: str) -> List[Faq]:
    """FAQs whose question or answer mentions every word of query"""
    words = [w for w in re.findall(r"\w+", (query or "").lower()) if len(w) > 2]
    if not words:
        return list(FAQS)
    return [
        faq for faq in FAQS
        if all(w in f"{faq.question} {faq.answer}".lower() for w in words)
    ]


async def send_contact(client: EduConnectAPIClient, name: str, email: str, message: str) -> StepResult:
    """Submit the contact form"""
    if not all((v or "").strip() for v in (name, email, message)):
        return StepResult(ok=False, message="Please fill in your name, email and message.")
    try:
        result = await client.send_contact(name.strip(), email.strip(), message.strip())
    except EduConnectError as e:
        logger.warning(f"Contact form failed: {e.message}")
        return StepResult(ok=False, message=f"Failed to send message: {e.message}")
    return StepResult(ok=True, message=result)
