"""
Readers for the newline-delimited GPU and environment files, and the merge
rules for their inline counterparts.
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def read_lines(path) -> List[str]:
    """Return the stripped lines of *path*, skipping blanks and ``#`` comments."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Could not read {file_path}: {e}") from e

    lines = []
    for line in text.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            lines.append(line)
    return lines


def load_gpu_list(gpu: Optional[str] = None, gpufile: Optional[str] = None) -> List[str]:
    """Resolve the GPU preference list, best value first.

    A file takes precedence over the inline comma-separated list. Order is
    preserved exactly; entries are neither sorted nor deduplicated.
    """
    if gpufile:
        gpus = read_lines(gpufile)
        source = gpufile
    elif gpu is not None:
        gpus = [g.strip() for g in gpu.split(",") if g.strip()]
        source = "--gpu"
    else:
        raise ConfigurationError("One of --gpu or --gpufile must be provided")

    if not gpus:
        raise ConfigurationError(f"No GPU types found in {source}")
    logger.debug(f"GPU preference list from {source}: {gpus}")
    return gpus


def parse_env_entries(entries: Iterable[str]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` entries, splitting on the first ``=``. Later keys win."""
    env: Dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigurationError(f"Invalid environment entry (expected KEY=VALUE): {entry!r}")
        env[key] = value
    return env


def merge_env(envfile: Optional[str] = None, inline: Iterable[str] = ()) -> Dict[str, str]:
    """Merge file-sourced env vars with inline ones; inline values win on collision."""
    env: Dict[str, str] = {}
    if envfile:
        env.update(parse_env_entries(read_lines(envfile)))
    env.update(parse_env_entries(inline))
    return env
