"""Minimum resources, member counts and priority ordering for pod groups."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace

from .models import (
    MPIJob,
    PodTemplateSpec,
    ReplicaSpec,
    ReplicaType,
    ResourceList,
    ResourceRequirements,
    SchedulingPolicy,
)

logger = logging.getLogger(__name__)


@dataclass
class ReplicaPriority:
    """A replica spec together with the priority it is scheduled with."""

    priority: int
    replica_type: ReplicaType
    replicas: int | None = None
    template: PodTemplateSpec = field(default_factory=PodTemplateSpec)


def add_resources(
    min_resources: ResourceList | None,
    resources: ResourceRequirements,
    replicas: int,
) -> ResourceList | None:
    """Return min_resources plus resources scaled by replicas.

    Requests take precedence; a limit counts only for a resource that has
    no request. None stays None.
    """
    if min_resources is None:
        return None
    total = dict(min_resources)
    if resources.is_empty:
        return total
    merged = dict(resources.limits)
    merged.update(resources.requests)
    for name, quantity in merged.items():
        scaled = quantity * replicas
        total[name] = total[name] + scaled if name in total else scaled
    return total


def calculate_min_available(mpi_job: MPIJob) -> int:
    """The policy's minAvailable, or the number of workers plus one."""
    policy = mpi_job.spec.run_policy.scheduling_policy
    if policy is not None and policy.min_available is not None:
        return policy.min_available
    return mpi_job.worker_replicas() + 1


def calculate_priority_class_name(
    replicas: Mapping[ReplicaType, ReplicaSpec],
    scheduling_policy: SchedulingPolicy | None,
) -> str:
    """The priority class from the policy, else the launcher, else the worker."""
    if scheduling_policy is not None and scheduling_policy.priority_class:
        return scheduling_policy.priority_class
    for replica_type in (ReplicaType.LAUNCHER, ReplicaType.WORKER):
        spec = replicas.get(replica_type)
        if spec is not None and spec.template.spec.priority_class_name:
            return spec.template.spec.priority_class_name
    return ""


def sort_by_priority(order: Iterable[ReplicaPriority]) -> list[ReplicaPriority]:
    """Highest priority first; equal priorities keep their relative order."""
    return sorted(order, key=lambda item: item.priority, reverse=True)


def worker_index(order: Sequence[ReplicaPriority]) -> int | None:
    """The position of the worker entry, or None when there is none."""
    return next(
        (
            index
            for index, item in enumerate(order)
            if item.replica_type == ReplicaType.WORKER
        ),
        None,
    )


def _replica_count(item: ReplicaPriority) -> int:
    if item.replicas is None:
        raise ValueError(f"replica spec {item.replica_type.value!r} has no replicas")
    return item.replicas


def compute_min_resources(
    min_member: int | None,
    mpi_job: MPIJob,
    priority_classes: Mapping[str, int] | None,
) -> ResourceList | None:
    """Sum the container resources of the first min_member replicas by priority.

    priority_classes maps priority class names to their values; a name that
    is not in it is ignored with a warning.
    """
    order: list[ReplicaPriority] = []
    for replica_type, spec in mpi_job.spec.replica_specs.items():
        priority = 0
        class_name = spec.template.spec.priority_class_name
        if class_name and priority_classes is not None:
            value = priority_classes.get(class_name)
            if value is None:
                logger.warning(
                    "Ignore replica %r priority class %r: not found",
                    replica_type.value,
                    class_name,
                )
            else:
                priority = value
        order.append(
            ReplicaPriority(priority, replica_type, spec.replicas, spec.template)
        )
    if not order:
        raise ValueError("the MPIJob has no replica specs")

    order = sort_by_priority(order)
    replicas = _replica_count(order[0])
    if len(order) > 1:
        # With runLauncherAsWorker there may be no worker.
        replicas += _replica_count(order[1])

    if min_member is not None and replicas > min_member:
        if len(order) < 2:
            raise ValueError(
                f"{replicas} replicas exceed minMember {min_member} "
                "with a single replica spec"
            )
        if order[0].priority == order[1].priority:
            # Workers count as lower priority than an equal launcher.
            index = worker_index(order)
            if index is None:
                logger.warning("Couldn't find the worker replicas")
                return None
        else:
            index = 1
        order[index] = replace(order[index], replicas=min_member - 1)

    total: ResourceList = {}
    for item in order:
        if item.replicas is None:
            continue
        for container in item.template.spec.containers:
            total = add_resources(total, container.resources, item.replicas)
    return total