"""SYMEXEC Configuration: project-level .symexecrc.json support.

Loads configuration from .symexecrc.json (or symexec.config.json) in the
project root or any parent directory. Allows teams to configure:
  - How the state store treats a program point reached a second time
  - Bounds on revisits and on exploration steps
  - Which program points are exits of the analysed unit
  - Log level and CLI output format

Example .symexecrc.json:
    {
      "revisit_policy": "bounded",
      "max_visits": 10,
      "max_steps": 10000,
      "exit_points": ["bb_exit"],
      "log_level": "INFO",
      "format": "json"
    }
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class RevisitPolicy(Enum):
    """What the state store does when a point receives a second state."""
    BOUNDED = "bounded"      # merge, re-queue until max_visits, then merge only
    MERGE = "merge"          # always merge and re-queue
    OVERWRITE = "overwrite"  # last writer wins
    REJECT = "reject"        # raise PreconditionViolation


@dataclass
class SymexecConfig:
    """Project-level SYMEXEC configuration."""
    revisit_policy: RevisitPolicy = RevisitPolicy.BOUNDED
    max_visits: int = 10
    max_steps: int = 10_000
    exit_points: List[str] = field(default_factory=list)
    # Logging: "DEBUG", "INFO", "WARNING", "ERROR"
    log_level: str = "WARNING"
    # Output: "text" or "json"
    format: str = "text"


# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".symexecrc.json",
    "symexec.config.json",
]


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> SymexecConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    If no config file is found, or it can't be read, returns defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return SymexecConfig()

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (IOError, OSError) as e:
        logger.warning("could not read config %s: %s", path, e)
        return SymexecConfig()
    except json.JSONDecodeError as e:
        logger.warning("invalid JSON in config %s: %s", path, e)
        return SymexecConfig()

    if not isinstance(data, dict):
        logger.warning("config %s is not a JSON object, using defaults", path)
        return SymexecConfig()

    return _dict_to_config(data)


def _dict_to_config(data: Dict[str, Any]) -> SymexecConfig:
    """Convert a parsed dict to SymexecConfig."""
    config = SymexecConfig()

    if "revisit_policy" in data:
        try:
            config.revisit_policy = RevisitPolicy(str(data["revisit_policy"]).lower())
        except ValueError:
            logger.warning("unknown revisit_policy %r, keeping %s",
                           data["revisit_policy"], config.revisit_policy.value)
    if "max_visits" in data:
        config.max_visits = int(data["max_visits"])
    if "max_steps" in data:
        config.max_steps = int(data["max_steps"])
    if "exit_points" in data and isinstance(data["exit_points"], list):
        config.exit_points = [str(p) for p in data["exit_points"]]
    if "log_level" in data:
        config.log_level = str(data["log_level"]).upper()
    if "format" in data:
        config.format = str(data["format"])

    return config
