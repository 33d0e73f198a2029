# mpigang

`mpigang` builds gang-scheduling PodGroups for MPI jobs. It supports two
schedulers: Volcano and the scheduler-plugins coscheduling plugin.

It also does the resource arithmetic behind those PodGroups:

- the minimum member count,
- the priority class,
- the minimum resources a job needs before any of its pods can start.

The package is pure Python and needs only the standard library.

## Modules

### `mpigang.quantity`

This module handles resource quantities such as `"500m"`, `"2Gi"`, `"40"` and `"1e3"`.

- `parse_quantity(text)` returns a `Quantity`. It raises `ValueError` when the text is malformed.
- A `Quantity` holds its value exactly, in billionths.
- It supports `+` with another quantity and `*` with an integer.
- It compares by value.
- `str()` writes it back in the format it was parsed in:
  - decimal SI (`k`, `M`, `m`, …),
  - binary SI (`Ki`, `Mi`, `Gi`, …),
  - decimal exponent.

### `mpigang.models`

This module holds the job description as plain data classes:

- `MPIJob`, `MPIJobSpec`, `RunPolicy` and `SchedulingPolicy`
- `ReplicaSpec` and `ReplicaType` (`LAUNCHER`, `WORKER`)
- `PodTemplateSpec`, `PodSpec`, `Container` and `ResourceRequirements`
- `ObjectMeta` and `OwnerReference`

Two methods on `MPIJob`:

- `MPIJob.controller_ref()` returns the owner reference that generated PodGroups carry.
- `MPIJob.worker_replicas()` returns the number of workers, or 0 when none is set.

### `mpigang.resources`

This module holds the scheduling calculations.

- `calculate_min_available(mpi_job)` returns the policy's `min_available`. When the policy does not set it, it returns the number of workers plus one.
- `calculate_priority_class_name(replicas, scheduling_policy)` looks for the priority class in this order, and returns `""` when none is set:
  1. the scheduling policy,
  2. the launcher template,
  3. the worker template.
- `add_resources(min_resources, resources, replicas)`:
  - returns a new resource dict: `min_resources` plus the container's resources multiplied by `replicas`;
  - uses the requests, and takes a limit only for a resource that has no request;
  - returns `None` when `min_resources` is `None`.
- `sort_by_priority(order)` sorts `ReplicaPriority` entries with the highest priority first. The sort is stable.
- `worker_index(order)` returns the position of the worker entry, or `None` when there is none.
- `compute_min_resources(min_member, mpi_job, priority_classes)` sums the container resources of the first `min_member` replicas in priority order.
  - `priority_classes` maps priority class names to their values.
  - Names it does not contain are ignored, with a warning logged.
  - When the launcher and the workers have equal priority, the workers count as the lower priority.
  - It raises `ValueError` if the job has no replica specs, or if a replica count it needs is missing.

### `mpigang.podgroup`

This module holds the PodGroup controls.

`PodGroupControl` is the common base class. `VolcanoControl` and `SchedulerPluginsControl` are its implementations. Their methods:

- `new_pod_group(mpi_job)` builds a `PodGroup` owned by the job. It returns `None` when `mpi_job` is `None`.
- `decorate_pod_template_spec(template, mpi_job_name)` prepares a pod template for the group:
  - It sets the scheduler name, and logs a warning when it overwrites a different one.
  - For Volcano it sets the `scheduling.k8s.io/group-name` annotation.
  - For scheduler-plugins it sets the `scheduling.x-k8s.io/pod-group` label.
- `calculate_min_resources(min_member, mpi_job)` returns the policy's `min_resources` when it is set. Otherwise it returns `None` when `min_member` is 0, and the computed sum in all other cases.
- `specs_equal(a, b)` compares the specs of two PodGroups.
- `get_pod_group`, `create_pod_group`, `update_pod_group` and `delete_pod_group` work on the control's `client`.
  - `update_pod_group(old, new)` copies the spec of `new` onto `old` and stores `old`.

`PodGroupClient` is an in-memory store of PodGroups keyed by namespace and name. A control creates one when none is passed in. Its methods:

- `get` and `delete` raise `KeyError` for an unknown group.
- `update` also raises `KeyError` for an unknown group.
- `create` raises `ValueError` for a group that already exists.

### `mpigang.version`

- `info(api_version)` returns the version lines: API version, version, Git SHA, build date, Python version and platform.
- `print_version_and_exit(api_version)` prints those lines and raises `SystemExit(0)`.

## Example

```python
from mpigang.models import (
    Container, MPIJob, MPIJobSpec, ObjectMeta, PodSpec, PodTemplateSpec,
    ReplicaSpec, ReplicaType, ResourceRequirements,
)
from mpigang.podgroup import SchedulerPluginsControl
from mpigang.quantity import parse_quantity


def replica(count, cpu, memory):
    resources = ResourceRequirements(
        requests={"cpu": parse_quantity(cpu), "memory": parse_quantity(memory)}
    )
    return ReplicaSpec(
        replicas=count,
        template=PodTemplateSpec(spec=PodSpec(containers=[Container(resources=resources)])),
    )


job = MPIJob(
    metadata=ObjectMeta(name="pi", namespace="default"),
    spec=MPIJobSpec(replica_specs={
        ReplicaType.LAUNCHER: replica(1, "1", "2Gi"),
        ReplicaType.WORKER: replica(2, "10", "20Gi"),
    }),
)
group = SchedulerPluginsControl(scheduler_name="default-scheduler").new_pod_group(job)
print(group.spec.min_member)                          # 3
print(group.spec.min_resources["memory"])             # 42Gi
```

## Default values for new PodGroups

| Field | Volcano | scheduler-plugins |
|---|---|---|
| min member | `min_available`, otherwise the number of workers plus one | same |
| queue | policy `queue`, otherwise the `scheduling.volcano.sh/queue-name` annotation | not set |
| priority class | policy, then launcher, then worker | not set |
| schedule timeout | not set | policy `schedule_timeout_seconds`, otherwise 0 |
| min resources | policy `min_resources`, otherwise computed; none when min member is 0 | same |

## What it does not do

- It does not connect to a cluster API server.
- It does not watch or reconcile MPIJobs. There is no controller loop and no informer.
- It does not look up priority classes from a cluster. You pass them in as a mapping.
- PodGroups are stored only in the in-memory `PodGroupClient`.
- The package has no command-line entry point.