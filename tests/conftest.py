"""
EduConnect - Test Configuration and Fixtures
"""
import inspect
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from faker import Faker

from educonnect.api_client import EduConnectAPIClient
from educonnect.config import ClientConfig
from educonnect.models import Role
from educonnect.navigation import Navigator
from educonnect.session import SessionContext
from educonnect.storage import PersistedStore

fake = Faker()

BASE_URL = "http://backend.test"


class FakeBackend:
    """In-memory stand-in for the REST backend, served through httpx.MockTransport"""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], Any]] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json_body: Any = None,
           body: Optional[bytes] = None, handler: Optional[Callable] = None,
           error: Optional[Exception] = None) -> None:
        """Register a canned response for method + path (path without query)"""
        def respond(request: httpx.Request):
            if error is not None:
                raise error
            if handler is not None:
                return handler(request)
            if body is not None:
                return httpx.Response(status, content=body)
            return httpx.Response(status, json=json_body if json_body is not None else {})

        self.routes[(method.upper(), path)] = respond

    def fail_network(self, method: str, path: str) -> None:
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)
        self.on(method, path, handler=handler)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        respond = self.routes.get((request.method, request.url.path))
        if respond is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {request.url.path}"})
        response = respond(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    @staticmethod
    def json_of(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def config(tmp_path) -> ClientConfig:
    return ClientConfig(
        api_base_url=BASE_URL,
        config_dir=str(tmp_path / "config"),
        redirect_delay=0.01,
        timeout=5,
    )


@pytest.fixture
def store(config) -> PersistedStore:
    return PersistedStore(config.storage_file)


@pytest.fixture
def session(store) -> SessionContext:
    return SessionContext(store)


@pytest.fixture
def navigator() -> Navigator:
    return Navigator()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(config, session, backend) -> EduConnectAPIClient:
    return EduConnectAPIClient(config, session, transport=httpx.MockTransport(backend.handle))


@pytest.fixture
def student_user() -> Dict[str, Any]:
    return {
        "id": "stu-1",
        "role": "student",
        "fullName": fake.name(),
        "email": fake.email(),
        "phone": fake.msisdn(),
    }


@pytest.fixture
def student_session(session, student_user):
    return session.start(Role.STUDENT, "student-token", student_user)


@pytest.fixture
def teacher_session(session):
    return session.start(Role.TEACHER, "teacher-token", {"id": "t-1", "fullName": fake.name()})


@pytest.fixture
def qao_session(session):
    return session.start(Role.QAO, "qao-token", {"id": "q-1"})
