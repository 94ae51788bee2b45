"""
Error types raised by the pod orchestrator.
Every failure surfaced to the CLI derives from PodOrchestratorError.
"""
from typing import Any, Optional, Sequence


class PodOrchestratorError(Exception):
    """Base class for orchestrator failures."""


class ConfigurationError(PodOrchestratorError):
    """Missing or malformed user input or environment configuration."""


class TransportError(PodOrchestratorError):
    """Network or HTTP level failure talking to the GraphQL endpoint."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ApplicationError(PodOrchestratorError):
    """The API accepted the request but reported errors in the response envelope."""

    def __init__(self, message: str, errors: Sequence[Any] = (), status_code: Optional[int] = None):
        super().__init__(message)
        self.errors = list(errors)
        self.status_code = status_code

    def messages(self) -> list[str]:
        out = []
        for err in self.errors:
            if isinstance(err, dict):
                out.append(str(err.get("message", err)))
            else:
                out.append(str(err))
        return out

    def is_not_found(self) -> bool:
        """True when every reported error says the target does not exist."""
        msgs = [m.lower() for m in self.messages()]
        if not msgs:
            return False
        return all("not found" in m or "does not exist" in m for m in msgs)


class MalformedResponseError(ApplicationError):
    """The response data did not have the expected shape."""


class NotFound(PodOrchestratorError):
    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} not found: {name}")
        self.kind = kind
        self.name = name


class BatchError(PodOrchestratorError):
    """One or more operations in a batch failed after every operation was attempted."""

    def __init__(self, label: str, result):
        self.label = label
        self.result = result
        failed = result.failed
        preview = "; ".join(f"#{o.index}: {o.error}" for o in failed[:3])
        more = f" (+{len(failed) - 3} more)" if len(failed) > 3 else ""
        super().__init__(
            f"{label}: {len(failed)} of {len(result)} operations failed: {preview}{more}"
        )
