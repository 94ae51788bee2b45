"""
Read-only queries against the account's templates and pods.
Nothing is cached: every call re-fetches from the API.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from . import queries
from .errors import MalformedResponseError, NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    image_name: str | None = None
    is_public: bool = False
    is_serverless: bool = False
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Template":
        if not isinstance(data, dict) or not isinstance(data.get("id"), str):
            raise MalformedResponseError(f"Template entry without a string id: {data!r}")
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            image_name=data.get("imageName"),
            is_public=bool(data.get("isPublic")),
            is_serverless=bool(data.get("isServerless")),
            raw=dict(data),
        )


@dataclass(frozen=True)
class Pod:
    id: str


def _myself_list(data: Any, key: str) -> List[Any]:
    myself = data.get("myself") if isinstance(data, dict) else None
    if not isinstance(myself, dict):
        raise MalformedResponseError(f"Response is missing 'myself': {data!r}")
    items = myself.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedResponseError(f"Expected 'myself.{key}' to be a list, got {type(items).__name__}")
    return items


class ResourceCatalog:
    """Template and pod listings for the authenticated account."""

    def __init__(self, client):
        self.client = client

    async def list_templates(self) -> List[Template]:
        """Return the account's private templates in the order the API lists them."""
        data = await self.client.execute(queries.LIST_TEMPLATES)
        templates = [Template.from_api(t) for t in _myself_list(data, "podTemplates")]
        private = [t for t in templates if not t.is_public]
        logger.debug(f"Fetched {len(templates)} templates ({len(private)} private)")
        return private

    async def list_pods(self) -> List[Pod]:
        data = await self.client.execute(queries.LIST_PODS)
        pods = []
        for entry in _myself_list(data, "pods"):
            if not isinstance(entry, dict) or not isinstance(entry.get("id"), str):
                raise MalformedResponseError(f"Pod entry without a string id: {entry!r}")
            pods.append(Pod(id=entry["id"]))
        logger.debug(f"Fetched {len(pods)} pods")
        return pods

    async def find_template(self, name: str) -> Template:
        for template in await self.list_templates():
            if template.name == name:
                return template
        raise NotFound("Template", name)
