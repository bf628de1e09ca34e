"""
Rich rendering for the console front-end
"""

from typing import Any, Dict, Iterable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from educonnect.dashboards import QaoDashboard, Section, StudentDashboard, TeacherDashboard
from educonnect.help_bot import Faq
from educonnect.models import PaymentStatus, Subject
from educonnect.workflow import StepResult


STATUS_COLORS = {
    PaymentStatus.CONFIRMED: "green",
    PaymentStatus.PENDING: "yellow",
    PaymentStatus.REJECTED: "red",
}


class Renderer:
    """Draws results, forms and dashboards"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    # ==================== Common ====================

    def result(self, result: StepResult) -> None:
        if result.ok:
            self.console.print(f"[green]✓ {result.message}[/green]" if result.message else "[green]✓ Done[/green]")
        else:
            self.console.print(f"[red]✗ {result.message}[/red]")

    def info(self, message: str) -> None:
        self.console.print(f"[dim]{message}[/dim]")

    def _section_error(self, section: Section) -> bool:
        if section.error:
            self.console.print(f"[red]Could not load {section.name}: {section.error}[/red]")
            return True
        return False

    def _table(self, title: str, columns: Iterable[str], rows: List[List[str]], empty: str) -> None:
        if not rows:
            self.console.print(f"[dim]{empty}[/dim]")
            return
        table = Table(title=title, show_header=True, header_style="bold cyan")
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)

    # ==================== Signup / Payment ====================

    def subjects(self, subjects: List[Subject], selected: Iterable[str] = ()) -> None:
        selected = set(selected)
        rows = [
            [str(i), "✓" if s.id in selected else "", s.name, f"GH₵ {s.price:g}"]
            for i, s in enumerate(subjects, start=1)
        ]
        self._table("Subjects", ["#", "", "Subject", "Price"], rows, "No subjects available for this grade.")

    def payment_summary(self, draft: Any, momo_number: str, momo_name: str) -> None:
        lines = [
            f"[bold]Full Name:[/bold] {draft.student_name}",
            f"[bold]Phone:[/bold] {draft.user.get('phone', '')}",
            f"[bold]Email:[/bold] {draft.user.get('email', '')}",
            f"[bold]Curriculum:[/bold] {draft.curriculum}",
            f"[bold]Grade:[/bold] {draft.grade}",
            f"[bold]Duration:[/bold] {draft.duration}",
            f"[bold]Package:[/bold] {draft.package}",
        ]
        if draft.subjects:
            lines.append(f"[bold]Subjects:[/bold] {', '.join(draft.subjects)}")
        lines.append(f"\n[bold green]Total Amount: GH₵ {draft.total_amount:g}[/bold green]")
        self.console.print(Panel("\n".join(lines), title="Complete Your Payment", border_style="blue"))
        reference = draft.student_name or "the student's full name"
        self.console.print(Panel(
            f"[bold]Number:[/bold] {momo_number}\n"
            f"[bold]Name:[/bold] {momo_name}\n"
            f"[bold]Reference:[/bold] {reference}\n\n"
            "[italic]After payment, attach a screenshot of the confirmation.[/italic]",
            title="MOMO Payment Instructions", border_style="yellow"
        ))

    # ==================== Dashboards ====================

    def notifications(self, notes: List[Any]) -> None:
        for note in notes[:5]:
            self.console.print(f"[cyan]🔔 {note.message}[/cyan] [dim]{note.time}[/dim]")

    def student(self, dash: StudentDashboard) -> None:
        profile = dash.profile
        self.notifications(dash.notifications)
        self.console.print(Panel(
            f"[bold]Curriculum:[/bold] {profile.get('curriculum') or 'N/A'}\n"
            f"[bold]Grade:[/bold] {profile.get('grade') or 'N/A'}\n"
            f"[bold]Duration:[/bold] {dash.duration_display}\n"
            f"[bold]Package:[/bold] {profile.get('package') or 'N/A'}",
            title=f"Welcome, {profile.get('fullName') or 'Student'}!",
            border_style="cyan"
        ))

        if not self._section_error(dash.sections["subjects"]):
            self._table("Your Subjects", ["Subject", "Price"],
                        [[s.name, f"₵{s.price:g}"] for s in dash.subjects],
                        "No subjects assigned.")

        if not self._section_error(dash.sections["broadcasts"]):
            self._table("Announcements", ["Subject", "Message", "Posted"],
                        [[b.get("subjectName") or "General", b.get("message", ""), str(b.get("createdAt", ""))]
                         for b in dash.broadcasts if isinstance(b, dict)],
                        "No broadcasts available.")

        if not self._section_error(dash.sections["assignments"]):
            self._table("Assignments", ["ID", "Title", "Due"],
                        [[str(a.get("_id") or a.get("id") or ""), a.get("title", ""), str(a.get("dueDate", ""))]
                         for a in dash.assignments if isinstance(a, dict)],
                        "No assignments available yet.")

        if not self._section_error(dash.sections["payments"]):
            rows = []
            for p in dash.payments:
                color = STATUS_COLORS.get(p.status, "white")
                rows.append([f"₵{p.amount:g}", p.package or "N/A", p.transaction_day,
                             f"[{color}]{p.status.value}[/{color}]"])
            self._table("Payment History", ["Amount", "Package", "Date", "Status"], rows,
                        "No payment records found.")

    def teacher(self, dash: TeacherDashboard) -> None:
        self.notifications(dash.notifications)
        for name, columns, fields, empty in (
            ("subjects", ["ID", "Subject"], ("name",), "No subjects assigned."),
            ("students", ["ID", "Student", "Email"], ("fullName", "email"), "No students yet."),
            ("assignments", ["ID", "Title", "Due"], ("title", "dueDate"), "No assignments posted."),
        ):
            section = dash.sections[name]
            if self._section_error(section):
                continue
            rows = [
                [str(item.get("_id") or item.get("id") or "")] + [str(item.get(f, "")) for f in fields]
                for item in section.items if isinstance(item, dict)
            ]
            self._table(name.capitalize(), columns, rows, empty)

        if not self._section_error(dash.sections["messages"]):
            self._table("Messages", ["ID", "Message", "Date"],
                        [[str(m.get("_id") or m.get("id") or ""), m.get("content") or m.get("message", ""),
                          str(m.get("date", ""))]
                         for m in dash.items("messages") if isinstance(m, dict)],
                        "No messages.")

        self._table("Recent Activity", ["Type", "Subject", "Message", "Time"],
                    [[a["type"], a["subject"], a["message"], a["time"]] for a in dash.activities],
                    "No recent activity.")

    def qao(self, dash: QaoDashboard) -> None:
        self.notifications(dash.notifications)
        if not self._section_error(dash.sections["teachers"]):
            self._table("Teachers", ["ID", "Name", "Email"],
                        [[str(t.get("_id") or t.get("id") or ""), t.get("fullName", ""), t.get("email", "")]
                         for t in dash.items("teachers") if isinstance(t, dict)],
                        "No teachers found.")
        if not self._section_error(dash.sections["resources"]):
            self._table("Resources", ["ID", "Title", "Teacher", "Approved"],
                        [[str(r.get("_id") or r.get("id") or ""), r.get("title", ""),
                          (r.get("teacher") or {}).get("fullName", "") if isinstance(r.get("teacher"), dict) else "",
                          "[green]yes[/green]" if r.get("approved") else "[yellow]pending[/yellow]"]
                         for r in dash.items("resources") if isinstance(r, dict)],
                        "No resources submitted.")
        if not self._section_error(dash.sections["kpis"]):
            self._table("KPIs", ["Name", "Value"],
                        [[str(k.get("name") or k.get("title") or ""), str(k.get("value", ""))]
                         for k in dash.items("kpis") if isinstance(k, dict)],
                        "No KPIs recorded.")
        if not self._section_error(dash.sections["messages"]):
            self._table("Inbox", ["Subject", "Message"],
                        [[m.get("subject", ""), m.get("message") or m.get("content", "")]
                         for m in dash.items("messages") if isinstance(m, dict)],
                        "Inbox is empty.")
        notes = dash.items("notifications")
        if notes and not dash.sections["notifications"].error:
            self.console.print(f"[bold]{len(notes)} notification(s)[/bold]")

    # ==================== Account / Help ====================

    def status(self, session: Any, user: Dict[str, Any]) -> None:
        if session is None:
            self.console.print(Panel(
                "[red]Not logged in[/red]\n\nLogin with: [cyan]educonnect login[/cyan]",
                title="Authentication Status", border_style="red"
            ))
            return
        self.console.print(Panel(
            f"[green]Authenticated[/green]\n\n"
            f"[bold]Role:[/bold] {session.role.value}\n"
            f"[bold]User ID:[/bold] {session.user_id or 'Not set'}\n"
            f"[bold]Name:[/bold] {user.get('fullName') or user.get('name') or 'Not set'}\n"
            f"[bold]Email:[/bold] {user.get('email') or 'Not set'}",
            title="Authentication Status", border_style="green"
        ))

    def faqs(self, faqs: List[Faq]) -> None:
        if not faqs:
            self.console.print("[dim]No matching questions. Try 'educonnect contact'.[/dim]")
            return
        for faq in faqs:
            self.console.print(f"[bold cyan]Q: {faq.question}[/bold cyan]")
            self.console.print(f"   {faq.answer}\n")
