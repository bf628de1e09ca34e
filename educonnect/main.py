#!/usr/bin/env python3
"""
EduConnect CLI - Main Entry Point

Usage:
    educonnect login                    # Login as student or teacher
    educonnect signup                   # Register and pay
    educonnect pay -s proof.png         # Upload a pending payment proof
    educonnect dashboard                # Show the dashboard for your role
    educonnect --help                   # Show help
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

from educonnect.api_client import EduConnectAPIClient
from educonnect.auth import AuthManager
from educonnect.config import ClientConfig
from educonnect.dashboards import DASHBOARDS, QaoDashboard, StudentDashboard, TeacherDashboard
from educonnect.help_bot import search_faqs, send_contact
from educonnect.logging_config import setup_logging
from educonnect.models import Role
from educonnect.navigation import Navigator
from educonnect.renderer import Renderer
from educonnect.session import SessionContext
from educonnect.storage import PersistedStore
from educonnect.workflow import PaymentWorkflow, SignupState, SignupWorkflow, StepResult


@dataclass
class AppContext:
    """Everything a command needs"""
    config: ClientConfig
    session: SessionContext
    navigator: Navigator
    client: EduConnectAPIClient
    renderer: Renderer

    @property
    def console(self) -> Console:
        return self.renderer.console


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="educonnect",
        description="EduConnect - tutoring platform client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  educonnect signup                          Register a student and pay
  educonnect login --role teacher            Login as a teacher
  educonnect dashboard                       Show your dashboard
  educonnect broadcast -s SUBJECT -m "..."   Teacher broadcast
  educonnect submit-assignment ID --typed "My answer"
  educonnect faq payment                     Search the help bot
        """
    )

    parser.add_argument("--server-url", type=str, help="Backend server URL")
    parser.add_argument("--config-dir", type=str, help="Directory for stored session and config")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version="%(prog)s 1.0.0")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    role_choices = [Role.STUDENT.value, Role.TEACHER.value]

    login_parser = subparsers.add_parser("login", help="Login as student or teacher")
    login_parser.add_argument("--role", "-r", choices=role_choices, default="student")
    login_parser.add_argument("--email", "-e", help="Account email")

    subparsers.add_parser("logout", help="Logout")
    subparsers.add_parser("status", help="Show authentication status")
    subparsers.add_parser("whoami", help="Show current user info")

    signup_parser = subparsers.add_parser("signup", help="Register a new account")
    signup_parser.add_argument("--role", "-r", choices=role_choices, default="student")
    signup_parser.add_argument("--fresh", action="store_true", help="Discard any saved draft")

    pay_parser = subparsers.add_parser("pay", help="Upload the payment screenshot for a registration")
    pay_parser.add_argument("--screenshot", "-s", help="Path to the payment screenshot")

    subparsers.add_parser("dashboard", help="Show the dashboard for your role")

    broadcast_parser = subparsers.add_parser("broadcast", help="Teacher: broadcast to a subject")
    broadcast_parser.add_argument("--subject", "-s", required=True, help="Subject ID")
    broadcast_parser.add_argument("--message", "-m", required=True)

    assign_parser = subparsers.add_parser("post-assignment", help="Teacher: post an assignment")
    assign_parser.add_argument("--title", "-t", required=True)
    assign_parser.add_argument("--description", "-d", required=True)
    assign_parser.add_argument("--subject", "-s", required=True, help="Subject ID")
    assign_parser.add_argument("--due", help="Due date (YYYY-MM-DD)")

    reply_parser = subparsers.add_parser("reply", help="Teacher: reply to a message")
    reply_parser.add_argument("message_id")
    reply_parser.add_argument("--text", "-t", required=True)

    submit_parser = subparsers.add_parser("submit-assignment", help="Student: submit an assignment")
    submit_parser.add_argument("assignment_id")
    group = submit_parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--typed", help="Typed answer")
    group.add_argument("--file", help="Path to a file answer")
    group.add_argument("--image", help="Path to an image answer")

    approve_parser = subparsers.add_parser("approve", help="QAO: approve a teacher resource")
    approve_parser.add_argument("resource_id")
    approve_parser.add_argument("--reject", action="store_true", help="Reject instead of approve")

    message_parser = subparsers.add_parser("message", help="QAO: message a teacher")
    message_parser.add_argument("--to", required=True, help="Teacher ID")
    message_parser.add_argument("--subject", "-s", required=True)
    message_parser.add_argument("--text", "-t", required=True)

    forgot_parser = subparsers.add_parser("forgot-password", help="Request a password reset link")
    forgot_parser.add_argument("--role", "-r", choices=role_choices, default="student")
    forgot_parser.add_argument("--email", "-e")

    reset_parser = subparsers.add_parser("reset-password", help="Set a new password from a reset token")
    reset_parser.add_argument("token")
    reset_parser.add_argument("--role", "-r", choices=role_choices, default="student")

    subparsers.add_parser("qao-access", help="Enter the QAO access code")
    admin_parser = subparsers.add_parser("admin-login", help="Login as administrator")
    admin_parser.add_argument("--email", "-e")

    faq_parser = subparsers.add_parser("faq", help="Search frequently asked questions")
    faq_parser.add_argument("query", nargs="*")

    subparsers.add_parser("contact", help="Send a message to the EduConnect team")

    return parser


# =============================================================================
# Commands
# =============================================================================

async def cmd_login(ctx: AppContext, args) -> bool:
    auth = AuthManager(ctx.client, ctx.session, ctx.navigator)
    email = args.email or Prompt.ask("Email")
    password = Prompt.ask("Password", password=True)
    result = await auth.login(Role(args.role), email, password)
    ctx.renderer.result(result)
    return result.ok


async def cmd_signup(ctx: AppContext, args) -> bool:
    role = Role(args.role)
    flow = SignupWorkflow(ctx.client, ctx.session, ctx.navigator, role=role, resume=not args.fresh)
    draft = flow.draft

    keep_grade = False
    if draft.full_name and not args.fresh:
        ctx.renderer.info(f"Resuming saved registration for {draft.full_name}")
        if draft.package and draft.grade:
            restored = await flow.restore()
            if not restored.ok:
                ctx.renderer.result(restored)
            keep_grade = restored.ok and Confirm.ask(
                f"Keep package {draft.package} and grade {draft.grade}?", default=True
            )

    flow.update(
        full_name=Prompt.ask("Full name", default=draft.full_name or None),
        email=Prompt.ask("Email", default=draft.email or None),
        phone=Prompt.ask("Phone", default=draft.phone or None),
        curriculum=Prompt.ask("Curriculum", choices=["GES", "Cambridge"], default=draft.curriculum or "GES"),
        duration=Prompt.ask("Duration", default=draft.duration or None),
    )
    flow.update(password=Prompt.ask("Password", password=True))

    if not keep_grade:
        await flow.select_package(Prompt.ask("Package (e.g. GES-EC)", default=draft.package or None))
    while not keep_grade:
        result = await flow.select_grade(Prompt.ask("Grade (e.g. SHS 1)", default=flow.draft.grade or None))
        if result.ok:
            break
        ctx.renderer.result(result)
        if not Confirm.ask("Try again?", default=True):
            return False

    ctx.renderer.subjects(flow.subjects, flow.draft.selected_subject_ids)
    while True:
        picks = Prompt.ask("Subject numbers (comma separated)")
        chosen = []
        for token in picks.split(","):
            token = token.strip()
            if token.isdigit() and 1 <= int(token) <= len(flow.subjects):
                chosen.append(flow.subjects[int(token) - 1].id)
        flow.set_subjects(chosen)
        ctx.console.print(f"[bold]Total:[/bold] GH₵ {flow.total_amount:g}")
        if flow.can_submit:
            break
        ctx.renderer.result(StepResult(ok=False, message=flow.validate()[0]))

    while True:
        result = await flow.submit()
        ctx.renderer.result(result)
        if result.ok or flow.state != SignupState.FAILED:
            break
        if not Confirm.ask("Retry registration?", default=True):
            return False

    if not result.ok:
        return False
    if role == Role.TEACHER:
        ctx.renderer.info("Login with: educonnect login --role teacher")
        return True
    return await _pay(ctx, None, flow)


async def _pay(ctx: AppContext, screenshot: Optional[str], flow: Optional[SignupWorkflow] = None) -> bool:
    payment = PaymentWorkflow(
        ctx.client, ctx.session, ctx.navigator, ctx.config,
        draft=flow.payment_draft if flow else None,
    )
    if payment.draft is None:
        ctx.renderer.result(StepResult(ok=False, message="No pending registration. Run 'educonnect signup'."))
        return False

    ctx.renderer.payment_summary(payment.draft, ctx.config.momo_number, ctx.config.momo_name)
    while True:
        payment.attach(screenshot or Prompt.ask("Path to payment screenshot"))
        with ctx.console.status("Uploading payment proof..."):
            result = await payment.submit()
        ctx.renderer.result(result)
        if result.ok or screenshot:
            return result.ok
        if not Confirm.ask("Try again?", default=True):
            return False


async def cmd_pay(ctx: AppContext, args) -> bool:
    return await _pay(ctx, args.screenshot)


async def _mount(ctx: AppContext, role: Optional[Role] = None):
    current = ctx.session.current()
    if current is None:
        ctx.renderer.result(StepResult(ok=False, message="Not logged in. Run 'educonnect login'."))
        return None
    role = role or current.role
    controller_cls = DASHBOARDS.get(role)
    if controller_cls is None:
        ctx.renderer.result(StepResult(ok=False, message=f"No dashboard is available for the {role.value} role."))
        return None

    dash = controller_cls(ctx.client, ctx.session, ctx.navigator)
    with ctx.console.status("Loading dashboard..."):
        mounted = await dash.mount()
    if not mounted:
        message = "Your session has expired. Please log in again." if dash.expired \
            else f"Please log in as {role.value} first."
        ctx.renderer.result(StepResult(ok=False, message=message))
        return None
    return dash


async def cmd_dashboard(ctx: AppContext, args) -> bool:
    dash = await _mount(ctx)
    if dash is None:
        return False
    if isinstance(dash, StudentDashboard):
        ctx.renderer.student(dash)
    elif isinstance(dash, TeacherDashboard):
        ctx.renderer.teacher(dash)
    elif isinstance(dash, QaoDashboard):
        ctx.renderer.qao(dash)
    dash.unmount()
    return True


async def _act(ctx: AppContext, role: Role, action) -> bool:
    dash = await _mount(ctx, role)
    if dash is None:
        return False
    result = await action(dash)
    ctx.renderer.result(result)
    dash.unmount()
    return result.ok


async def cmd_broadcast(ctx: AppContext, args) -> bool:
    return await _act(ctx, Role.TEACHER, lambda d: d.send_broadcast(args.subject, args.message))


async def cmd_post_assignment(ctx: AppContext, args) -> bool:
    return await _act(ctx, Role.TEACHER,
                      lambda d: d.post_assignment(args.title, args.description, args.subject, args.due))


async def cmd_reply(ctx: AppContext, args) -> bool:
    return await _act(ctx, Role.TEACHER, lambda d: d.reply(args.message_id, args.text))


async def cmd_submit_assignment(ctx: AppContext, args) -> bool:
    if args.typed is not None:
        mode, content = "typed", args.typed
    elif args.file:
        mode, content = "file", args.file
    else:
        mode, content = "image", args.image
    return await _act(ctx, Role.STUDENT, lambda d: d.submit_assignment(args.assignment_id, mode, content))


async def cmd_approve(ctx: AppContext, args) -> bool:
    return await _act(ctx, Role.QAO, lambda d: d.review_resource(args.resource_id, not args.reject))


async def cmd_message(ctx: AppContext, args) -> bool:
    return await _act(ctx, Role.QAO, lambda d: d.send_message(args.to, args.subject, args.text))


async def cmd_forgot_password(ctx: AppContext, args) -> bool:
    auth = AuthManager(ctx.client, ctx.session, ctx.navigator)
    result = await auth.forget_password(Role(args.role), args.email or Prompt.ask("Email"))
    ctx.renderer.result(result)
    return result.ok


async def cmd_reset_password(ctx: AppContext, args) -> bool:
    auth = AuthManager(ctx.client, ctx.session, ctx.navigator)
    new_password = Prompt.ask("New password", password=True)
    confirm_password = Prompt.ask("Confirm password", password=True)
    result = await auth.reset_password(Role(args.role), args.token, new_password, confirm_password)
    ctx.renderer.result(result)
    return result.ok


async def cmd_qao_access(ctx: AppContext, args) -> bool:
    auth = AuthManager(ctx.client, ctx.session, ctx.navigator)
    result = await auth.qao_access(Prompt.ask("QAO access code", password=True))
    ctx.renderer.result(result)
    return result.ok


async def cmd_admin_login(ctx: AppContext, args) -> bool:
    auth = AuthManager(ctx.client, ctx.session, ctx.navigator)
    email = args.email or Prompt.ask("Email")
    result = await auth.admin_login(email, Prompt.ask("Password", password=True))
    ctx.renderer.result(result)
    return result.ok


async def cmd_contact(ctx: AppContext, args) -> bool:
    result = await send_contact(
        ctx.client,
        Prompt.ask("Your name"),
        Prompt.ask("Your email"),
        Prompt.ask("Message"),
    )
    ctx.renderer.result(result)
    return result.ok


ASYNC_COMMANDS = {
    "login": cmd_login,
    "signup": cmd_signup,
    "pay": cmd_pay,
    "dashboard": cmd_dashboard,
    "broadcast": cmd_broadcast,
    "post-assignment": cmd_post_assignment,
    "reply": cmd_reply,
    "submit-assignment": cmd_submit_assignment,
    "approve": cmd_approve,
    "message": cmd_message,
    "forgot-password": cmd_forgot_password,
    "reset-password": cmd_reset_password,
    "qao-access": cmd_qao_access,
    "admin-login": cmd_admin_login,
    "contact": cmd_contact,
}


async def run_command(ctx: AppContext, args) -> bool:
    try:
        return await ASYNC_COMMANDS[args.command](ctx, args)
    finally:
        await ctx.client.aclose()


def build_context(args, console: Console) -> AppContext:
    config = ClientConfig.load_default(args.config_dir)
    if args.server_url:
        config.api_base_url = args.server_url.rstrip('/')
    if args.verbose:
        config.verbose = True
        config.log_level = "DEBUG"

    setup_logging(config.log_level, config.log_file, config.json_logs)

    session = SessionContext(PersistedStore(config.storage_file))
    return AppContext(
        config=config,
        session=session,
        navigator=Navigator(),
        client=EduConnectAPIClient(config, session),
        renderer=Renderer(console),
    )


def main():
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args()
    console = Console()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.command == "faq":
        Renderer(console).faqs(search_faqs(" ".join(args.query)))
        sys.exit(0)

    ctx = build_context(args, console)

    if args.command == "logout":
        ctx.renderer.result(AuthManager(ctx.client, ctx.session, ctx.navigator).logout())
        sys.exit(0)

    if args.command in ("status", "whoami"):
        status = AuthManager(ctx.client, ctx.session, ctx.navigator).status()
        ctx.renderer.status(status["session"], status["user"])
        sys.exit(0)

    try:
        success = asyncio.run(run_command(ctx, args))
    except KeyboardInterrupt:
        console.print("\n\nGoodbye! 👋")
        sys.exit(130)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
