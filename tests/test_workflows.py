import asyncio
import json

import httpx
import pytest

from pod_orchestrator import queries
from pod_orchestrator.batch import BatchOrchestrator, default_orchestrator
from pod_orchestrator.errors import ApplicationError, BatchError, ConfigurationError, NotFound
from pod_orchestrator.graphql_client import GraphQLClient
from pod_orchestrator.limiter import ConcurrencyLimiter
from pod_orchestrator.workflows import (
    CloudType,
    LaunchRequest,
    launch_pods,
    terminate_all_pods,
)


def _request(**overrides):
    fields = dict(
        template_name="worker",
        count=3,
        gpu_type_ids=["H100", "A100", "RTX4090"],
        env={"A": "1", "B": "3"},
    )
    fields.update(overrides)
    return LaunchRequest(**fields)


def test_launch_sends_one_mutation_per_pod(fake_client):
    client = fake_client()
    report = asyncio.run(launch_pods(client, default_orchestrator(), _request(count=5)))

    launches = client.mutations(queries.DEPLOY_ON_DEMAND)
    assert len(launches) == 5
    assert sorted(report.pod_ids) == [f"pod-{i}" for i in range(1, 6)]
    assert report.template.id == "tpl-worker"


def test_launch_input_matches_request(fake_client):
    client = fake_client()
    asyncio.run(launch_pods(client, default_orchestrator(), _request(count=1)))

    pod_input = client.mutations(queries.DEPLOY_ON_DEMAND)[0]["input"]
    assert pod_input["gpuTypeIdList"] == ["H100", "A100", "RTX4090"]
    assert pod_input["templateId"] == "tpl-worker"
    assert pod_input["name"] == "worker"
    assert pod_input["cloudType"] == "SECURE"
    assert pod_input["gpuCount"] == 1
    assert pod_input["startSsh"] is True
    assert sorted(pod_input["env"], key=lambda e: e["key"]) == [
        {"key": "A", "value": "1"},
        {"key": "B", "value": "3"},
    ]


def test_launch_community_cloud(fake_client):
    client = fake_client()
    asyncio.run(launch_pods(client, default_orchestrator(), _request(count=1, cloud_type=CloudType.COMMUNITY)))
    assert client.mutations(queries.DEPLOY_ON_DEMAND)[0]["input"]["cloudType"] == "COMMUNITY"


def test_launch_unknown_template_sends_no_mutations(fake_client):
    client = fake_client()
    with pytest.raises(NotFound):
        asyncio.run(launch_pods(client, default_orchestrator(), _request(template_name="missing")))
    assert client.mutations(queries.DEPLOY_ON_DEMAND) == []


def test_launch_public_template_is_not_found(fake_client):
    client = fake_client()
    with pytest.raises(NotFound):
        asyncio.run(launch_pods(client, default_orchestrator(), _request(template_name="x")))
    assert client.mutations(queries.DEPLOY_ON_DEMAND) == []


def test_launch_partial_failure_attempts_everything(fake_client):
    client = fake_client(launch_error=lambda n: n % 2 == 0)
    with pytest.raises(BatchError) as excinfo:
        asyncio.run(launch_pods(client, default_orchestrator(), _request(count=6)))

    assert len(client.mutations(queries.DEPLOY_ON_DEMAND)) == 6
    result = excinfo.value.result
    assert len(result.failed) == 3
    assert len(result.succeeded) == 3
    assert all(isinstance(o.error, ApplicationError) for o in result.failed)


def test_launch_respects_concurrency(fake_client):
    limiter = ConcurrencyLimiter(2)
    asyncio.run(launch_pods(fake_client(), BatchOrchestrator(limiter), _request(count=10)))
    assert limiter.peak_in_flight <= 2


@pytest.mark.parametrize("overrides", [{"count": 0}, {"gpu_type_ids": []}])
def test_launch_request_validation(overrides):
    with pytest.raises(ConfigurationError):
        _request(**overrides)


def test_terminate_every_listed_pod(fake_client):
    client = fake_client(pods=["a", "b", "c"])
    report = asyncio.run(terminate_all_pods(client, default_orchestrator()))

    terminated = [v["input"]["podId"] for v in client.mutations(queries.TERMINATE_POD)]
    assert sorted(terminated) == ["a", "b", "c"]
    assert len(report.pods) == 3
    assert report.result.ok
    assert report.already_gone == []


def test_terminate_with_no_pods(fake_client):
    client = fake_client(pods=[])
    report = asyncio.run(terminate_all_pods(client, default_orchestrator()))
    assert client.mutations(queries.TERMINATE_POD) == []
    assert len(report.result) == 0


def test_terminate_treats_missing_pod_as_gone(fake_client):
    gone = ApplicationError("gone", errors=[{"message": "Pod not found"}])
    client = fake_client(pods=["a", "b"], terminate_errors={"b": gone})
    report = asyncio.run(terminate_all_pods(client, default_orchestrator()))

    assert report.result.ok
    assert report.already_gone == ["b"]


def test_terminate_failure_surfaces_after_all_attempted(fake_client):
    boom = ApplicationError("boom", errors=[{"message": "Internal server error"}])
    client = fake_client(pods=["a", "b", "c"], terminate_errors={"a": boom})

    with pytest.raises(BatchError) as excinfo:
        asyncio.run(terminate_all_pods(client, default_orchestrator()))

    assert len(client.mutations(queries.TERMINATE_POD)) == 3
    assert [o.index for o in excinfo.value.result.failed] == [0]


def test_terminate_announces_pods_before_mutations(fake_client):
    client = fake_client(pods=["a", "b"])
    seen = []

    def on_listed(pods):
        seen.append(([p.id for p in pods], len(client.mutations(queries.TERMINATE_POD))))

    asyncio.run(terminate_all_pods(client, default_orchestrator(), on_listed=on_listed))
    assert seen == [(["a", "b"], 0)]


def test_terminate_treats_http_404_not_found_as_gone(mock_http):
    def handler(request):
        body = json.loads(request.content)
        if "podTerminate" not in body["query"]:
            return httpx.Response(200, json={"data": {"myself": {"pods": [{"id": "a"}, {"id": "b"}]}}})
        if body["variables"]["input"]["podId"] == "b":
            return httpx.Response(404, json={"errors": [{"message": "pod does not exist"}]})
        return httpx.Response(200, json={"data": {"podTerminate": None}})

    client = GraphQLClient("https://api.example.test/graphql", "key", http_client=mock_http(handler))
    report = asyncio.run(terminate_all_pods(client, default_orchestrator()))

    assert report.result.ok
    assert report.already_gone == ["b"]
