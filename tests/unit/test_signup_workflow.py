"""
Unit Tests for SignupWorkflow
Tests for: subject loading, selection pruning, totals, submission bounds, resume
"""
import asyncio

import httpx
import pytest

from educonnect.models import Role, Subject
from educonnect.workflow import SignupState, SignupWorkflow, compute_total, prune_selection

SUBJECTS_PATH = "/api/subjects/by-package/GES-VC"
SIGNUP_PATH = "/api/auth/signup"

SUBJECTS = [
    {"_id": "s1", "name": "Maths", "price": 100},
    {"_id": "s2", "name": "English", "price": 80},
    {"_id": "s3", "name": "Science", "price": 120},
    {"_id": "s4", "name": "ICT", "price": 50},
]

SIGNUP_OK = {"token": "jwt-new", "user": {"_id": "u1", "fullName": "Ama Owusu"}}


@pytest.fixture
def workflow(client, session, navigator, backend):
    backend.on("GET", SUBJECTS_PATH, json_body=SUBJECTS)
    wf = SignupWorkflow(client, session, navigator)
    wf.update(
        full_name="Ama Owusu",
        email="ama@example.com",
        phone="0240000000",
        password="secret1",
        curriculum="GES",
        duration="3 months",
    )
    return wf


async def _ready(wf, grade="SHS 1"):
    await wf.select_package("ges vc")
    return await wf.select_grade(grade)


class TestHelpers:
    """Test pure total/pruning helpers"""

    def test_compute_total_ignores_unknown_ids(self):
        subjects = [Subject("a", "A", 10.5), Subject("b", "B", 20)]

        assert compute_total(subjects, ["a", "b", "zzz"]) == 30.5

    def test_prune_keeps_order_and_drops_duplicates(self):
        subjects = [Subject("a", "A"), Subject("b", "B"), Subject("c", "C")]

        assert prune_selection(subjects, ["c", "x", "a", "c"]) == ["c", "a"]


class TestSubjectLoading:
    """Test dependent subject list"""

    @pytest.mark.asyncio
    async def test_grade_loads_subjects(self, workflow):
        result = await _ready(workflow)

        assert result.ok is True
        assert workflow.state == SignupState.SUBJECTS_READY
        assert [s.id for s in workflow.subjects] == ["s1", "s2", "s3", "s4"]
        assert workflow.draft.package == "GES-VC"

    @pytest.mark.asyncio
    async def test_package_without_grade_does_not_fetch(self, workflow, backend):
        await workflow.select_package("GES-VC")

        assert backend.requests == []
        assert workflow.state == SignupState.EDITING

    @pytest.mark.asyncio
    async def test_selection_pruned_and_total_recomputed(self, workflow, backend):
        """Test changing grade drops subjects the new grade does not offer"""
        await _ready(workflow)
        workflow.set_subjects(["s1", "s2"])
        assert workflow.total_amount == 180

        backend.on("GET", SUBJECTS_PATH, json_body={"data": SUBJECTS[1:3]})
        await workflow.select_grade("SHS 2")

        assert workflow.draft.selected_subject_ids == ["s2"]
        assert workflow.total_amount == 80
        assert workflow.draft.total_amount == 80

    @pytest.mark.asyncio
    async def test_fetch_failure_empties_selection(self, workflow, backend):
        await _ready(workflow)
        workflow.set_subjects(["s1", "s2"])

        backend.on("GET", SUBJECTS_PATH, status=500, json_body={"message": "Database unavailable"})
        result = await workflow.select_grade("SHS 3")

        assert result.ok is False
        assert workflow.state == SignupState.EDITING
        assert workflow.error == "Database unavailable"
        assert workflow.subjects == []
        assert workflow.draft.selected_subject_ids == []
        assert workflow.total_amount == 0

    @pytest.mark.asyncio
    async def test_blank_package_drops_previous_subjects(self, workflow, backend):
        """Test clearing the package cannot leave an old selection submittable"""
        await _ready(workflow)
        workflow.set_subjects(["s1", "s2"])

        await workflow.select_package("")
        result = await workflow.select_grade("SHS 1")

        assert result.ok is False
        assert workflow.state == SignupState.EDITING
        assert workflow.subjects == []
        assert workflow.draft.selected_subject_ids == []
        assert workflow.total_amount == 0
        assert workflow.can_submit is False
        assert len(backend.calls("GET", SUBJECTS_PATH)) == 1

    @pytest.mark.asyncio
    async def test_stale_response_is_ignored(self, workflow, backend):
        """Test a slow earlier grade fetch cannot overwrite a newer one"""
        await workflow.select_package("GES-VC")
        release = asyncio.Event()

        async def handler(request):
            if request.url.params["grade"] == "SHS 1":
                await release.wait()
                return httpx.Response(200, json=SUBJECTS[:1])
            return httpx.Response(200, json=SUBJECTS[1:3])

        backend.on("GET", SUBJECTS_PATH, handler=handler)

        slow = asyncio.create_task(workflow.select_grade("SHS 1"))
        await asyncio.sleep(0)
        fresh = await workflow.select_grade("SHS 2")
        release.set()
        stale = await slow

        assert fresh.ok is True
        assert stale.ok is False
        assert [s.id for s in workflow.subjects] == ["s2", "s3"]
        assert workflow.draft.grade == "SHS 2"
        assert workflow.state == SignupState.SUBJECTS_READY

    @pytest.mark.asyncio
    async def test_toggle_subject(self, workflow):
        await _ready(workflow)

        workflow.toggle_subject("s1")
        workflow.toggle_subject("s3")
        workflow.toggle_subject("s1")

        assert workflow.draft.selected_subject_ids == ["s3"]


class TestSubmission:
    """Test signup submission"""

    @pytest.mark.parametrize("selected", [["s1"], ["s1", "s2", "s3", "s4"]])
    @pytest.mark.asyncio
    async def test_student_subject_bounds_rejected(self, workflow, backend, selected):
        """Test fewer than two or more than three subjects never reaches the backend"""
        await _ready(workflow)
        workflow.set_subjects(selected)

        result = await workflow.submit()

        assert result.ok is False
        assert workflow.can_submit is False
        assert backend.calls("POST", SIGNUP_PATH) == []

    @pytest.mark.parametrize("selected", [["s1", "s2"], ["s1", "s2", "s3"]])
    @pytest.mark.asyncio
    async def test_student_subject_bounds_allowed(self, workflow, backend, selected):
        backend.on("POST", SIGNUP_PATH, json_body=SIGNUP_OK)
        await _ready(workflow)
        workflow.set_subjects(selected)

        result = await workflow.submit()

        assert result.ok is True
        assert len(backend.calls("POST", SIGNUP_PATH)) == 1

    @pytest.mark.asyncio
    async def test_submit_before_subjects_load(self, workflow, backend):
        result = await workflow.submit()

        assert result.ok is False
        assert backend.calls("POST", SIGNUP_PATH) == []

    @pytest.mark.asyncio
    async def test_success_hands_off_to_payment(self, workflow, backend, session, navigator):
        backend.on("POST", SIGNUP_PATH, json_body=SIGNUP_OK)
        await _ready(workflow)
        workflow.set_subjects(["s1", "s2"])

        result = await workflow.submit()

        assert result.ok is True
        assert workflow.state == SignupState.SUCCEEDED
        assert session.current().token == "jwt-new"
        assert navigator.path == "/payment"
        assert navigator.current.state["totalAmount"] == 180

        draft = session.load_payment_draft()
        assert draft.student_id == "u1"
        assert draft.subjects == ["Maths", "English"]
        assert draft.grade == "SHS 1"

    @pytest.mark.asyncio
    async def test_failure_keeps_draft_for_retry(self, workflow, backend, client, session, navigator):
        backend.on("POST", SIGNUP_PATH, status=409, json_body={"message": "Email already registered"})
        await _ready(workflow)
        workflow.set_subjects(["s1", "s2"])

        result = await workflow.submit()

        assert result.ok is False
        assert result.message == "Email already registered"
        assert workflow.state == SignupState.FAILED
        assert session.load_signup_draft().selected_subject_ids == ["s1", "s2"]
        assert session.load_payment_draft() is None
        assert navigator.path == "/"

        backend.on("POST", SIGNUP_PATH, json_body=SIGNUP_OK)
        retry = await workflow.submit()

        assert retry.ok is True
        assert workflow.state == SignupState.SUCCEEDED

    @pytest.mark.asyncio
    async def test_response_without_user_fails(self, workflow, backend):
        backend.on("POST", SIGNUP_PATH, json_body={"message": "ok"})
        await _ready(workflow)
        workflow.set_subjects(["s1", "s2"])

        result = await workflow.submit()

        assert result.ok is False
        assert workflow.state == SignupState.FAILED

    @pytest.mark.asyncio
    async def test_teacher_has_no_subject_bound(self, client, session, navigator, backend):
        backend.on("GET", SUBJECTS_PATH, json_body=SUBJECTS)
        backend.on("POST", SIGNUP_PATH, json_body={"user": {"_id": "t1", "role": "teacher"}})
        wf = SignupWorkflow(client, session, navigator, role=Role.TEACHER)
        wf.update(full_name="Mr Boateng", email="b@example.com", password="secret1")
        await _ready(wf)
        wf.set_subjects(["s1"])

        result = await wf.submit()

        assert result.ok is True
        assert navigator.path == "/login"
        assert session.current() is None


class TestResume:
    """Test that an interrupted signup picks up where it stopped"""

    @pytest.mark.asyncio
    async def test_restore_after_restart(self, workflow, client, session, navigator):
        await _ready(workflow)
        workflow.set_subjects(["s2", "s3"])

        resumed = SignupWorkflow(client, session, navigator)
        result = await resumed.restore()

        assert result.ok is True
        assert resumed.draft.full_name == "Ama Owusu"
        assert resumed.draft.selected_subject_ids == ["s2", "s3"]
        assert resumed.total_amount == 200
        assert resumed.state == SignupState.SUBJECTS_READY

    def test_draft_for_other_role_not_resumed(self, workflow, client, session, navigator):
        teacher = SignupWorkflow(client, session, navigator, role=Role.TEACHER)

        assert teacher.draft.full_name == ""
        assert teacher.draft.role == Role.TEACHER

    def test_unknown_field_rejected(self, workflow):
        with pytest.raises(ValueError):
            workflow.update(favourite_colour="blue")
