import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pod_orchestrator import queries  # noqa: E402
from pod_orchestrator.errors import ApplicationError  # noqa: E402


class FakeClient:
    """Stands in for GraphQLClient; answers from canned templates and pods."""

    def __init__(self, templates=(), pods=(), launch_error=None, terminate_errors=None):
        self.templates = list(templates)
        self.pods = list(pods)
        self.launch_error = launch_error
        self.terminate_errors = terminate_errors or {}
        self.calls = []
        self._launched = 0

    def mutations(self, document):
        return [variables for query, variables in self.calls if query is document]

    async def execute(self, query, variables=None):
        self.calls.append((query, variables))
        await asyncio.sleep(0)
        if query is queries.LIST_TEMPLATES:
            return {"myself": {"podTemplates": self.templates}}
        if query is queries.LIST_PODS:
            return {"myself": {"pods": [{"id": p} for p in self.pods]}}
        if query is queries.DEPLOY_ON_DEMAND:
            self._launched += 1
            if self.launch_error and self.launch_error(self._launched):
                raise ApplicationError("no capacity", errors=[{"message": "There are no longer any instances available"}])
            return {"podFindAndDeployOnDemand": {"id": f"pod-{self._launched}"}}
        if query is queries.TERMINATE_POD:
            pod_id = variables["input"]["podId"]
            if pod_id in self.terminate_errors:
                raise self.terminate_errors[pod_id]
            return {"podTerminate": None}
        raise AssertionError(f"unexpected query: {query}")


@pytest.fixture
def templates():
    return [
        {"id": "tpl-public", "name": "x", "isPublic": True, "imageName": "runpod/pytorch"},
        {"id": "tpl-worker", "name": "worker", "isPublic": False, "imageName": "me/worker:1"},
        {"id": "tpl-y", "name": "y", "isPublic": False, "imageName": "me/y:2"},
    ]


@pytest.fixture
def fake_client(templates):
    def factory(**kwargs):
        kwargs.setdefault("templates", templates)
        return FakeClient(**kwargs)
    return factory


@pytest.fixture
def mock_http():
    """Build an httpx.AsyncClient backed by a handler; records every request body."""
    requests = []

    def factory(handler):
        def wrapped(request: httpx.Request) -> httpx.Response:
            requests.append((request, json.loads(request.content)))
            return handler(request)
        return httpx.AsyncClient(transport=httpx.MockTransport(wrapped))

    factory.requests = requests
    return factory


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("RUNPOD_API_KEY", "RUNPOD_GRAPHQL_URL", "POD_BATCH_CONCURRENCY",
                 "RUNPOD_REQUEST_TIMEOUT_SEC", "LOG_FILE", "LOG_FORMAT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
