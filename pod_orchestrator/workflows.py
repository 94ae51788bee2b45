"""
Launch and terminate workflows.

Both resolve what to act on through the catalog, build one operation per
pod, and run them as a single batch. Every operation is attempted before a
failure is reported.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from . import queries
from .batch import BatchOrchestrator, BatchResult
from .catalog import Pod, ResourceCatalog, Template
from .errors import ApplicationError, ConfigurationError

logger = logging.getLogger(__name__)


class CloudType(str, Enum):
    SECURE = "SECURE"
    COMMUNITY = "COMMUNITY"


@dataclass(frozen=True)
class LaunchRequest:
    template_name: str
    count: int
    gpu_type_ids: List[str]
    env: Dict[str, str] = field(default_factory=dict)
    cloud_type: CloudType = CloudType.SECURE

    def __post_init__(self):
        if self.count < 1:
            raise ConfigurationError(f"count must be at least 1, got {self.count}")
        if not self.gpu_type_ids:
            raise ConfigurationError("At least one GPU type is required")

    def variables(self, template_id: str) -> dict:
        return queries.deploy_on_demand_variables(
            template_id=template_id,
            name=self.template_name,
            gpu_type_ids=self.gpu_type_ids,
            env=self.env,
            cloud_type=self.cloud_type.value,
        )


@dataclass(frozen=True)
class LaunchReport:
    template: Template
    result: BatchResult

    @property
    def pod_ids(self) -> List[str]:
        return [v for v in self.result.values() if v]


@dataclass(frozen=True)
class TerminateReport:
    pods: List[Pod]
    result: BatchResult

    @property
    def already_gone(self) -> List[str]:
        return [o.value["podId"] for o in self.result.succeeded if o.value.get("alreadyGone")]


async def launch_pods(client, orchestrator: BatchOrchestrator, request: LaunchRequest) -> LaunchReport:
    """Launch ``request.count`` pods from a private template.

    Raises NotFound before any mutation is sent if the template does not
    resolve, and BatchError after the batch settles if any launch failed.
    """
    template = await ResourceCatalog(client).find_template(request.template_name)
    logger.info(
        f"🚀 Launching {request.count} pods from template {template.name} ({template.id}) "
        f"on {request.cloud_type.value} cloud, GPUs in order: {request.gpu_type_ids}"
    )
    variables = request.variables(template.id)

    async def deploy_one() -> Optional[str]:
        data = await client.execute(queries.DEPLOY_ON_DEMAND, variables)
        pod = (data or {}).get("podFindAndDeployOnDemand") or {}
        pod_id = pod.get("id")
        if pod_id:
            logger.info(f"Pod created with ID: {pod_id}")
        return pod_id

    result = await orchestrator.run([deploy_one] * request.count, label="launch")
    result.raise_for_failures("launch")
    return LaunchReport(template=template, result=result)


async def terminate_all_pods(client, orchestrator: BatchOrchestrator,
                             on_listed: Optional[Callable[[List[Pod]], None]] = None) -> TerminateReport:
    """Terminate every pod listed for the account.

    *on_listed* is called with the listed pods before any termination is sent.
    Pods that vanish between listing and termination count as already gone.
    """
    pods = await ResourceCatalog(client).list_pods()
    logger.info(f"🛑 Terminating {len(pods)} pods")
    if on_listed is not None:
        on_listed(pods)

    def make_terminate(pod: Pod):
        async def terminate_one() -> dict:
            try:
                await client.execute(queries.TERMINATE_POD, queries.terminate_pod_variables(pod.id))
            except ApplicationError as e:
                if not e.is_not_found():
                    raise
                logger.warning(f"Pod {pod.id} was already gone: {'; '.join(e.messages())}")
                return {"podId": pod.id, "alreadyGone": True}
            logger.info(f"Pod terminated: {pod.id}")
            return {"podId": pod.id, "alreadyGone": False}
        return terminate_one

    result = await orchestrator.run([make_terminate(p) for p in pods], label="terminate")
    result.raise_for_failures("terminate")
    return TerminateReport(pods=pods, result=result)
