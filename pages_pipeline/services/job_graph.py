"""Dependency graph over the jobs of a workflow."""

from pages_pipeline.errors import WorkflowDefinitionError
from pages_pipeline.models import Job, Workflow


class JobGraph:
    """Jobs held in declaration order, with dependencies stored as indices.

    ``dependencies[i]`` lists the indices of the jobs job ``i`` needs.
    """

    def __init__(self, jobs: list[Job]):
        """Build and validate the graph.

        Raises:
            WorkflowDefinitionError: On duplicate names, unknown or self
                dependencies, or dependency cycles
        """
        self.jobs = list(jobs)
        self.index: dict[str, int] = {}
        for position, job in enumerate(self.jobs):
            if job.name in self.index:
                raise WorkflowDefinitionError(f"Duplicate job name: {job.name!r}", job_name=job.name)
            self.index[job.name] = position

        self.dependencies: list[list[int]] = []
        for job in self.jobs:
            edges = []
            for need in job.needs:
                if need == job.name:
                    raise WorkflowDefinitionError(f"Job {job.name!r} needs itself", job_name=job.name)
                if need not in self.index:
                    raise WorkflowDefinitionError(
                        f"Job {job.name!r} needs unknown job {need!r}", job_name=job.name
                    )
                edges.append(self.index[need])
            self.dependencies.append(edges)

        self._order = self._topological_order()

    @classmethod
    def from_workflow(cls, workflow: Workflow) -> "JobGraph":
        return cls(workflow.jobs)

    def _topological_order(self) -> list[int]:
        # Kahn's algorithm; ready jobs are taken in declaration order
        remaining = [len(deps) for deps in self.dependencies]
        dependents: list[list[int]] = [[] for _ in self.jobs]
        for position, deps in enumerate(self.dependencies):
            for dep in deps:
                dependents[dep].append(position)

        ready = [i for i, count in enumerate(remaining) if count == 0]
        order: list[int] = []
        while ready:
            ready.sort()
            current = ready.pop(0)
            order.append(current)
            for dependent in dependents[current]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    ready.append(dependent)

        if len(order) != len(self.jobs):
            cyclic = [self.jobs[i].name for i, count in enumerate(remaining) if count > 0]
            raise WorkflowDefinitionError(f"Dependency cycle between jobs: {', '.join(cyclic)}")
        return order

    def order(self) -> list[Job]:
        """Jobs in an order where every job follows everything it needs."""
        return [self.jobs[i] for i in self._order]

    def needs_of(self, name: str) -> list[Job]:
        return [self.jobs[i] for i in self.dependencies[self.index[name]]]
