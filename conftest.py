"""Global test configuration.

Provides a simulated platform seeded with the canonical scenario: group "web"
with nodes a, b in region "us" and c, d in region "eu".
"""

import pytest
from factroll.application.dtos.rollout_dtos import RolloutRequest
from factroll.application.use_cases.batch_lifecycle import BatchLifecycle
from factroll.application.use_cases.resolve_target import ResolveTarget
from factroll.application.use_cases.run_rollout import RunRollout
from factroll.infrastructure.adapters.simulated_platform import SimulatedPlatformAdapter

COMMIT = "3f2a9c1d5e7b9a0c1d2e3f4a5b6c7d8e9f0a1b2c"

WEB_INVENTORY = {
    "groups": {
        "web": {"environment": "production", "nodes": ["a", "b", "c", "d"]},
        "empty": {"environment": "production", "nodes": []},
    },
    "facts": {
        "a": {"region": "us"},
        "b": {"region": "us"},
        "c": {"region": "eu"},
        "d": {"region": "eu"},
    },
    "branches": {"target": "0000000"},
}


class RecordingClock:
    def __init__(self):
        self.sleeps = []

    async def sleep(self, seconds):
        self.sleeps.append(seconds)


@pytest.fixture
def platform():
    return SimulatedPlatformAdapter.from_dict(WEB_INVENTORY)


@pytest.fixture
def make_platform():
    def _make(platform_cls=SimulatedPlatformAdapter, **overrides):
        return platform_cls.from_dict({**WEB_INVENTORY, **overrides})

    return _make



@pytest.fixture
def clock():
    return RecordingClock()


@pytest.fixture
def make_rollout(clock):
    def _make(platform, **kwargs):
        lifecycle = BatchLifecycle(platform, platform, platform, platform)
        return RunRollout(
            ResolveTarget(platform, platform),
            platform,
            lifecycle,
            platform,
            clock,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_request():
    def _make(**overrides):
        params = {
            "revision": COMMIT,
            "target_group": "web",
            "target_branch": "target",
            "fact": "region",
            "rollout_id": "r1",
        }
        params.update(overrides)
        return RolloutRequest(**params)

    return _make
