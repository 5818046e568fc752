"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to all factroll settings
- Falls back to sensible defaults when config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Rollout inputs (revision, group, branch) live in the `rollout` section so CI
  jobs can supply them as FACTROLL_ROLLOUT_* variables; they are validated
  when the CLI turns them into a RolloutRequest
"""

from __future__ import annotations
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import json
import logging
import os

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RolloutDefaultsConfig:
    """Rollout inputs and defaults."""
    revision: str = ""
    group: str = ""
    branch: str = "production"
    fact: str = ""
    repo: str = "origin"
    noop: bool = False
    post_noop_enforce: bool = False
    batch_delay_seconds: float = 0.0
    fail_if_no_nodes: bool = False
    missing_fact_policy: str = "fail"


@dataclass(frozen=True)
class GitConfig:
    """Control repository working copy used for branch operations."""
    workdir: str = ""
    push_timeout: int = 120


@dataclass(frozen=True)
class AgentConfig:
    """Configuration agent runner."""
    runner: str = "simulated"  # "simulated" or "fabric"
    command: str = "puppet agent --test"
    ssh_user: str = "root"
    ssh_port: int = 22
    connect_timeout: int = 30


@dataclass(frozen=True)
class PlatformConfig:
    """Platform collaborators (inventory, facts, classifier, code deploy)."""
    inventory_file: str = "inventory.json"


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    insecure: bool = False
    service_name: str = "factroll"


@dataclass(frozen=True)
class FactrollConfig:
    """Root configuration for factroll."""
    rollout: RolloutDefaultsConfig = field(default_factory=RolloutDefaultsConfig)
    git: GitConfig = field(default_factory=GitConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    platform: PlatformConfig = field(default_factory=PlatformConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    log_level: str = "WARNING"


_TOP_LEVEL_KEYS = {"log_level"}


def _env_override(data: dict, prefix: str = "FACTROLL") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern FACTROLL_SECTION_KEY.
    For example: FACTROLL_ROLLOUT_REVISION=3f2a9c1, FACTROLL_AGENT_RUNNER=fabric
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        name = key[len(prefix) + 1:].lower()
        if name in _TOP_LEVEL_KEYS:
            data[name] = value
            continue
        parts = name.split("_", 1)
        if len(parts) == 2:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
        else:
            data[parts[0]] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    # Environment values arrive as strings
    for f in dataclasses.fields(cls):
        if f.name in filtered and isinstance(filtered[f.name], str):
            if f.type == "int":
                filtered[f.name] = int(filtered[f.name])
            elif f.type == "float":
                filtered[f.name] = float(filtered[f.name])
            elif f.type == "bool":
                filtered[f.name] = filtered[f.name].lower() in ("true", "1", "yes")

    return cls(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "FACTROLL",
) -> FactrollConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (FACTROLL_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to factroll.json in CWD.
        env_prefix: Environment variable prefix. Defaults to FACTROLL.
    """
    config_path = Path(path) if path else Path("factroll.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    return FactrollConfig(
        rollout=_build_sub_config(RolloutDefaultsConfig, data.get("rollout", {})),
        git=_build_sub_config(GitConfig, data.get("git", {})),
        agent=_build_sub_config(AgentConfig, data.get("agent", {})),
        platform=_build_sub_config(PlatformConfig, data.get("platform", {})),
        telemetry=_build_sub_config(TelemetryConfig, data.get("telemetry", {})),
        log_level=data.get("log_level", "WARNING"),
    )
