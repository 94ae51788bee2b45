"""
GraphQL documents used against the RunPod API.

Dynamic values always travel as typed variables, never interpolated into the
document text.
"""
from typing import Any, Dict, List, Mapping, Sequence

LIST_TEMPLATES = """
query myself {
  myself {
    podTemplates {
      advancedStart
      containerDiskInGb
      containerRegistryAuthId
      dockerArgs
      earned
      id
      imageName
      isPublic
      isRunpod
      isServerless
      name
      ports
      readme
      runtimeInMin
      startJupyter
      startScript
      startSsh
      volumeInGb
      volumeMountPath
    }
  }
}
"""

LIST_PODS = """
query myself {
  myself {
    pods {
      id
    }
  }
}
"""

DEPLOY_ON_DEMAND = """
mutation podFindAndDeployOnDemand($input: PodFindAndDeployOnDemandInput!) {
  podFindAndDeployOnDemand(input: $input) {
    id
  }
}
"""

TERMINATE_POD = """
mutation podTerminate($input: PodTerminateInput!) {
  podTerminate(input: $input)
}
"""


def env_to_graphql(env: Mapping[str, str]) -> List[Dict[str, str]]:
    """Convert an env mapping to the ``[{key, value}]`` list the API expects."""
    return [{"key": key, "value": value} for key, value in env.items()]


def deploy_on_demand_variables(
    *,
    template_id: str,
    name: str,
    gpu_type_ids: Sequence[str],
    env: Mapping[str, str],
    cloud_type: str,
    gpu_count: int = 1,
    container_disk_in_gb: int = 0,
    volume_in_gb: int = 0,
    min_memory_in_gb: int = 4,
    min_vcpu_count: int = 1,
    docker_args: str = "",
    start_jupyter: bool = False,
    start_ssh: bool = True,
    support_public_ip: bool = True,
) -> Dict[str, Any]:
    # gpuTypeIdList is ordered by preference (best value first); keep it as given.
    return {
        "input": {
            "cloudType": cloud_type,
            "containerDiskInGb": container_disk_in_gb,
            "dockerArgs": docker_args,
            "env": env_to_graphql(env),
            "gpuCount": gpu_count,
            "gpuTypeIdList": list(gpu_type_ids),
            "minMemoryInGb": min_memory_in_gb,
            "minVcpuCount": min_vcpu_count,
            "name": name,
            "startJupyter": start_jupyter,
            "startSsh": start_ssh,
            "supportPublicIp": support_public_ip,
            "templateId": template_id,
            "volumeInGb": volume_in_gb,
        }
    }


def terminate_pod_variables(pod_id: str) -> Dict[str, Any]:
    return {"input": {"podId": pod_id}}
