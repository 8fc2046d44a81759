"""
Stage-based ramp math for Locust load shapes.

A run is described as a list of stages, each moving the user count
linearly from where the previous stage ended to its own ``target`` over
``duration`` seconds.  The first stage starts from zero users.

Kept free of Locust imports so the arithmetic can be unit tested without
gevent monkey-patching the test process.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class Stage:
    """Move linearly to ``target`` users over ``duration`` seconds."""

    duration: float
    target: int


def total_duration(stages: Sequence[Stage]) -> float:
    return sum(stage.duration for stage in stages)


def target_at(stages: Sequence[Stage], run_time: float) -> int | None:
    """
    Return the user count for *run_time* seconds into the run.

    Returns:
        The interpolated user count, or ``None`` once every stage has
        finished (Locust stops the run on ``None``).
    """
    start_users = 0
    elapsed = 0.0
    for stage in stages:
        if run_time < elapsed + stage.duration:
            fraction = (run_time - elapsed) / stage.duration
            return round(start_users + (stage.target - start_users) * fraction)
        elapsed += stage.duration
        start_users = stage.target
    return None


def spawn_rate_at(stages: Sequence[Stage], run_time: float) -> float:
    """
    Users per second needed to follow the current stage's slope.

    Never below 1 so that Locust still converges on hold stages.
    """
    start_users = 0
    elapsed = 0.0
    for stage in stages:
        if run_time < elapsed + stage.duration:
            slope = abs(stage.target - start_users) / stage.duration
            return max(1.0, math.ceil(slope))
        elapsed += stage.duration
        start_users = stage.target
    return 1.0


# 0 -> 100 users over 20 s, hold for 40 s, back to 0 over 20 s.
READ_LOAD_STAGES = (
    Stage(duration=20, target=100),
    Stage(duration=40, target=100),
    Stage(duration=20, target=0),
)

# Mixed workload: readers and writers together, held for one minute.
MIXED_READERS = 15
MIXED_WRITERS = 5
MIXED_DURATION = 60

# Aggregate 95th-percentile request latency limit for both workloads.
MAX_P95_MS = 500
