"""Pod groups for gang scheduling with volcano or scheduler-plugins."""

from __future__ import annotations

import abc
import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from .models import MPIJob, ObjectMeta, PodTemplateSpec, ResourceList
from .resources import (
    calculate_min_available,
    calculate_priority_class_name,
    compute_min_resources,
)

logger = logging.getLogger(__name__)

VOLCANO_API_VERSION = "scheduling.volcano.sh/v1beta1"
SCHEDULER_PLUGINS_API_VERSION = "scheduling.x-k8s.io/v1alpha1"
VOLCANO_SCHEDULER_NAME = "volcano"
QUEUE_NAME_ANNOTATION_KEY = "scheduling.volcano.sh/queue-name"
KUBE_GROUP_NAME_ANNOTATION_KEY = "scheduling.k8s.io/group-name"
POD_GROUP_LABEL = "scheduling.x-k8s.io/pod-group"


@dataclass
class VolcanoPodGroupSpec:
    min_member: int = 0
    queue: str = ""
    priority_class_name: str = ""
    min_resources: ResourceList | None = None


@dataclass
class SchedulerPluginsPodGroupSpec:
    min_member: int = 0
    schedule_timeout_seconds: int | None = None
    min_resources: ResourceList | None = None


@dataclass
class PodGroup:
    """A group of pods that must be scheduled together."""

    api_version: str
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: VolcanoPodGroupSpec | SchedulerPluginsPodGroupSpec = field(
        default_factory=VolcanoPodGroupSpec
    )
    kind: str = "PodGroup"


class PodGroupClient:
    """An in-memory store of pod groups keyed by namespace and name."""

    def __init__(self) -> None:
        self._groups: dict[tuple[str, str], PodGroup] = {}

    def _key(self, namespace: str, name: str) -> tuple[str, str]:
        key = (namespace, name)
        if key not in self._groups:
            raise KeyError(f"pod group {namespace}/{name} not found")
        return key

    def get(self, namespace: str, name: str) -> PodGroup:
        """Return a copy of the stored pod group; KeyError if absent."""
        return copy.deepcopy(self._groups[self._key(namespace, name)])

    def create(self, pod_group: PodGroup) -> PodGroup:
        """Store a new pod group; ValueError if it already exists."""
        key = (pod_group.metadata.namespace, pod_group.metadata.name)
        if key in self._groups:
            raise ValueError(f"pod group {key[0]}/{key[1]} already exists")
        self._groups[key] = copy.deepcopy(pod_group)
        return copy.deepcopy(pod_group)

    def update(self, pod_group: PodGroup) -> PodGroup:
        """Replace a stored pod group; KeyError if absent."""
        key = self._key(pod_group.metadata.namespace, pod_group.metadata.name)
        self._groups[key] = copy.deepcopy(pod_group)
        return copy.deepcopy(pod_group)

    def delete(self, namespace: str, name: str) -> None:
        """Remove a stored pod group; KeyError if absent."""
        key = self._key(namespace, name)
        removed = self._groups.pop(key)
        logger.debug(
            "deleted pod group %s/%s (%s)",
            namespace,
            name,
            removed.api_version,
        )


class PodGroupControl(abc.ABC):
    """Builds and manages the pod group of an MPIJob for one gang scheduler."""

    def __init__(
        self,
        client: PodGroupClient | None = None,
        scheduler_name: str = "",
        priority_classes: Mapping[str, int] | None = None,
    ) -> None:
        self.client = client if client is not None else PodGroupClient()
        self.scheduler_name = scheduler_name
        self.priority_classes = priority_classes

    @abc.abstractmethod
    def new_pod_group(self, mpi_job: MPIJob | None) -> PodGroup | None:
        """A new pod group owned by the job, or None without a job."""

    @abc.abstractmethod
    def _attach_group(self, metadata: ObjectMeta, mpi_job_name: str) -> None:
        """Mark pod metadata as belonging to the job's pod group."""

    def get_pod_group(self, namespace: str, name: str) -> PodGroup:
        return self.client.get(namespace, name)

    def create_pod_group(self, pod_group: PodGroup) -> PodGroup:
        return self.client.create(pod_group)

    def update_pod_group(self, old: PodGroup, new: PodGroup) -> PodGroup:
        """Give old the spec of new and store it."""
        old.spec = copy.deepcopy(new.spec)
        return self.client.update(old)

    def delete_pod_group(self, namespace: str, name: str) -> None:
        self.client.delete(namespace, name)

    def decorate_pod_template_spec(
        self, template: PodTemplateSpec, mpi_job_name: str
    ) -> None:
        """Set the gang scheduler and the pod group on a pod template."""
        if template.spec.scheduler_name != self.scheduler_name:
            logger.warning(
                "%s scheduler is specified when gang-scheduling is enabled "
                "and it will be overwritten",
                template.spec.scheduler_name,
            )
        template.spec.scheduler_name = self.scheduler_name
        self._attach_group(template.metadata, mpi_job_name)

    def calculate_min_resources(
        self, min_member: int | None, mpi_job: MPIJob
    ) -> ResourceList | None:
        """The policy's minResources, or the sum over the first min_member pods."""
        policy = mpi_job.spec.run_policy.scheduling_policy
        if policy is not None and policy.min_resources is not None:
            return policy.min_resources
        if min_member == 0:
            return None
        return compute_min_resources(min_member, mpi_job, self.priority_classes)

    def specs_equal(self, a: PodGroup, b: PodGroup) -> bool:
        return a.spec == b.spec


def _owned_metadata(mpi_job: MPIJob) -> ObjectMeta:
    return ObjectMeta(
        name=mpi_job.metadata.name,
        namespace=mpi_job.metadata.namespace,
        owner_references=[mpi_job.controller_ref()],
    )


class VolcanoControl(PodGroupControl):
    """Pod groups for the volcano scheduler."""

    def __init__(
        self,
        client: PodGroupClient | None = None,
        priority_classes: Mapping[str, int] | None = None,
        scheduler_name: str = VOLCANO_SCHEDULER_NAME,
    ) -> None:
        super().__init__(client, scheduler_name, priority_classes)

    def new_pod_group(self, mpi_job: MPIJob | None) -> PodGroup | None:
        """Queue comes from the policy or the queue annotation; no timeout."""
        if mpi_job is None:
            return None
        min_member = calculate_min_available(mpi_job)
        queue = (mpi_job.metadata.annotations or {}).get(QUEUE_NAME_ANNOTATION_KEY, "")
        policy = mpi_job.spec.run_policy.scheduling_policy
        if policy is not None and policy.queue:
            queue = policy.queue
        return PodGroup(
            api_version=VOLCANO_API_VERSION,
            metadata=_owned_metadata(mpi_job),
            spec=VolcanoPodGroupSpec(
                min_member=min_member,
                queue=queue,
                priority_class_name=calculate_priority_class_name(
                    mpi_job.spec.replica_specs, policy
                ),
                min_resources=self.calculate_min_resources(min_member, mpi_job),
            ),
        )

    def _attach_group(self, metadata: ObjectMeta, mpi_job_name: str) -> None:
        if metadata.annotations is None:
            metadata.annotations = {}
        metadata.annotations[KUBE_GROUP_NAME_ANNOTATION_KEY] = mpi_job_name


class SchedulerPluginsControl(PodGroupControl):
    """Pod groups for the scheduler-plugins coscheduling plugin."""

    def new_pod_group(self, mpi_job: MPIJob | None) -> PodGroup | None:
        """Timeout comes from the policy (default 0); no queue or priority."""
        if mpi_job is None:
            return None
        timeout = 0
        policy = mpi_job.spec.run_policy.scheduling_policy
        if policy is not None and policy.schedule_timeout_seconds is not None:
            timeout = policy.schedule_timeout_seconds
        min_member = calculate_min_available(mpi_job)
        origin = self.calculate_min_resources(min_member, mpi_job)
        return PodGroup(
            api_version=SCHEDULER_PLUGINS_API_VERSION,
            metadata=_owned_metadata(mpi_job),
            spec=SchedulerPluginsPodGroupSpec(
                min_member=min_member,
                schedule_timeout_seconds=timeout,
                min_resources=dict(origin) if origin is not None else None,
            ),
        )

    def _attach_group(self, metadata: ObjectMeta, mpi_job_name: str) -> None:
        if metadata.labels is None:
            metadata.labels = {}
        metadata.labels[POD_GROUP_LABEL] = mpi_job_name