"""The MPIJob object model used to build pod groups."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from .quantity import Quantity

API_VERSION = "kubeflow.org/v2beta1"
KIND = "MPIJob"

ResourceList = dict[str, Quantity]


class ReplicaType(str, enum.Enum):
    """The role a replica plays in an MPIJob."""

    LAUNCHER = "Launcher"
    WORKER = "Worker"


@dataclass
class OwnerReference:
    """A reference from an owned object back to its owner."""

    api_version: str
    kind: str
    name: str
    uid: str = ""
    controller: bool = True
    block_owner_deletion: bool = True


@dataclass
class ObjectMeta:
    """Name, namespace, labels and annotations of an object."""

    name: str = ""
    namespace: str = ""
    uid: str = ""
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    owner_references: list[OwnerReference] = field(default_factory=list)


@dataclass
class ResourceRequirements:
    """Requested and limiting amounts of resources for a container."""

    requests: ResourceList = field(default_factory=dict)
    limits: ResourceList = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.requests and not self.limits


@dataclass
class Container:
    name: str = ""
    image: str = ""
    resources: ResourceRequirements = field(default_factory=ResourceRequirements)


@dataclass
class PodSpec:
    scheduler_name: str = ""
    priority_class_name: str = ""
    containers: list[Container] = field(default_factory=list)


@dataclass
class PodTemplateSpec:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: PodSpec = field(default_factory=PodSpec)


@dataclass
class ReplicaSpec:
    replicas: int | None = None
    template: PodTemplateSpec = field(default_factory=PodTemplateSpec)
    restart_policy: str = ""


@dataclass
class SchedulingPolicy:
    """Gang-scheduling settings of an MPIJob."""

    min_available: int | None = None
    queue: str = ""
    min_resources: ResourceList | None = None
    priority_class: str = ""
    schedule_timeout_seconds: int | None = None


@dataclass
class RunPolicy:
    scheduling_policy: SchedulingPolicy | None = None


@dataclass
class MPIJobSpec:
    replica_specs: dict[ReplicaType, ReplicaSpec] = field(default_factory=dict)
    run_policy: RunPolicy = field(default_factory=RunPolicy)
    run_launcher_as_worker: bool | None = None


@dataclass
class MPIJob:
    """An MPI job with a launcher and a set of workers."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: MPIJobSpec = field(default_factory=MPIJobSpec)

    def controller_ref(self) -> OwnerReference:
        """An owner reference that marks this job as the controller."""
        return OwnerReference(
            api_version=API_VERSION,
            kind=KIND,
            name=self.metadata.name,
            uid=self.metadata.uid,
        )

    def worker_replicas(self) -> int:
        """The number of worker replicas, 0 when none are set."""
        worker = self.spec.replica_specs.get(ReplicaType.WORKER)
        if worker is None or worker.replicas is None:
            return 0
        return worker.replicas