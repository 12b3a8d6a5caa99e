"""Filter names and the option lists offered for each of them."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Union

ALL_NAMESPACES = "*"


class Filter(str, Enum):
    """Closed set of filters; values double as query parameter names."""

    STATUS = "status"
    TRIGGERED_BY = "triggeredBy"
    NAMESPACE = "namespace"

    @classmethod
    def parse(cls, name: Union["Filter", str]) -> "Filter":
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            pass
        # Also accept the member name, e.g. "TRIGGERED_BY" or "triggered_by"
        try:
            return cls[str(name).upper()]
        except KeyError:
            raise ValueError(f"unknown filter: {name!r}") from None


@dataclass(frozen=True)
class Option:
    key: Optional[str]
    label: str


def is_unfiltered(value: Optional[str]) -> bool:
    return not value or value == ALL_NAMESPACES


STATUS_OPTIONS: List[Option] = [
    Option(None, "All"),
    Option("blocked", "Blocked"),
    Option("pending", "Pending"),
    Option("complete", "Complete"),
    Option("failed", "Failed"),
    Option("canceled", "Canceled"),
]

TRIGGERED_BY_OPTIONS: List[Option] = [
    Option(None, "All"),
    Option("job-register", "Job Register"),
    Option("job-deregister", "Job Deregister"),
    Option("periodic-job", "Periodic Job"),
    Option("node-drain", "Node Drain"),
    Option("node-update", "Node Update"),
    Option("alloc-stop", "Allocation Stop"),
    Option("scheduled", "Scheduled"),
    Option("rolling-update", "Rolling Update"),
    Option("deployment-watcher", "Deployment Watcher"),
    Option("failed-follow-up", "Failed Follow Up"),
    Option("max-plan-attempts", "Max Plan Attempts"),
    Option("alloc-failure", "Allocation Failure"),
    Option("queued-allocs", "Queued Allocations"),
    Option("preemption", "Preemption"),
    Option("job-scaling", "Job Scaling"),
]


def namespace_options(names: Iterable[str]) -> List[Option]:
    """Build namespace choices, with the unfiltered entry first."""
    options = [Option(None, f"All ({ALL_NAMESPACES})")]
    options.extend(Option(name, name) for name in names)
    return options
