"""
Dependency-ordered generation workflow.

Builds the four-stage workflow for one run and tracks task status.

Architecture:
    ::

        Stage 1  Style Guide Generation      priority 1   deps: none
        Stage 2  Component Generation        priority 2   deps: every style task
        Stage 3  Page Generation             priority 3   deps: every style + component task
        Stage 4  Integration & Configuration priority 4   (always empty)

    An entity gets a task when it is in ``changed_entity_ids`` or has no
    entry in ``existing_code``. Stages without tasks are left out of the
    workflow. Dependencies only point at strictly earlier stages, so the
    task graph is acyclic by construction.

Status transitions:
    ::

        pending ──> in-progress ──> completed
           │             └────────> failed
           └──────────────────────> failed     (cancelled before start)

    Anything else raises ``InvalidTransitionError``.

Examples:
    >>> manager = TaskManager()
    >>> steps = manager.build_workflow(GenerationContext(spec=spec, changed_entity_ids={"s1", "p1"}))
    >>> [s.name for s in steps]
    ['Style Guide Generation', 'Page Generation']
    >>> manager.next_runnable_task().id
    'task-s1'

Tags:
    workflow, scheduling, dag, task-manager, specforge
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from specforge.core.errors import InvalidTransitionError, NotFoundError
from specforge.core.logging import get_logger
from specforge.generation.types import (
    GeneratedCode,
    GenerationContext,
    GenerationTask,
    Progress,
    TaskKind,
    TaskStatus,
    WorkflowStep,
)
from specforge.spec.models import Entity

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Stage:
    kind: TaskKind
    priority: int
    name: str
    description: str


STYLE_STAGE = _Stage(
    TaskKind.STYLE_GUIDE, 1, "Style Guide Generation", "Generate global styles and theme configuration"
)
COMPONENT_STAGE = _Stage(
    TaskKind.COMPONENT, 2, "Component Generation", "Generate reusable React components"
)
PAGE_STAGE = _Stage(TaskKind.PAGE, 3, "Page Generation", "Generate Next.js page components")
INTEGRATION_STAGE = _Stage(
    TaskKind.INTEGRATION,
    4,
    "Integration & Configuration",
    "Generate API routes, configs, and integrations",
)

_ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.FAILED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


def task_id_for(entity_id: str) -> str:
    return f"task-{entity_id}"


class TaskManager:
    """Owns the task and workflow state of one generation run."""

    def __init__(self, *, clock: Callable[[], datetime] | None = None):
        self._tasks: dict[str, GenerationTask] = {}
        self._workflow: list[WorkflowStep] = []
        self._clock = clock or (lambda: datetime.now(UTC))

    # ── Construction ────────────────────────────────────────────────────

    def build_workflow(self, context: GenerationContext) -> list[WorkflowStep]:
        self.reset()
        spec = context.spec

        style_ids = self._add_stage(STYLE_STAGE, spec.styles, context, dependencies=[])
        component_ids = self._add_stage(
            COMPONENT_STAGE, spec.components(), context, dependencies=style_ids
        )
        self._add_stage(
            PAGE_STAGE, spec.page_views(), context, dependencies=style_ids + component_ids
        )
        # Extension point: integration tasks are not produced yet.
        self._add_stage(INTEGRATION_STAGE, [], context, dependencies=[])

        logger.info(
            "workflow.built",
            steps=[s.name for s in self._workflow],
            tasks=len(self._tasks),
        )
        return list(self._workflow)

    def _needs_generation(self, entity: Entity, context: GenerationContext) -> bool:
        if entity.id in context.changed_entity_ids:
            return True
        return context.existing_code is None or entity.id not in context.existing_code

    def _add_stage(
        self,
        stage: _Stage,
        entities: list[Entity],
        context: GenerationContext,
        *,
        dependencies: list[str],
    ) -> list[str]:
        tasks = [
            GenerationTask(
                id=task_id_for(entity.id),
                kind=stage.kind,
                entity_id=entity.id,
                priority=stage.priority,
                dependency_task_ids=list(dependencies),
                created_at=self._clock(),
            )
            for entity in entities
            if self._needs_generation(entity, context)
        ]
        if not tasks:
            return []

        for task in tasks:
            self._tasks[task.id] = task
        self._workflow.append(WorkflowStep(name=stage.name, description=stage.description, tasks=tasks))
        return [t.id for t in tasks]

    # ── Scheduling ──────────────────────────────────────────────────────

    def dependencies_satisfied(self, task: GenerationTask) -> bool:
        return all(
            dep in self._tasks and self._tasks[dep].status is TaskStatus.COMPLETED
            for dep in task.dependency_task_ids
        )

    def failed_dependencies(self, task: GenerationTask) -> list[str]:
        """Dependencies that failed. A non-empty result means the task can never run."""
        return [
            dep
            for dep in task.dependency_task_ids
            if dep in self._tasks and self._tasks[dep].status is TaskStatus.FAILED
        ]

    def next_runnable_task(self) -> GenerationTask | None:
        """Lowest-priority-number pending task whose dependencies completed."""
        runnable = [
            t
            for t in self._tasks.values()
            if t.status is TaskStatus.PENDING and self.dependencies_satisfied(t)
        ]
        # stable sort: ties keep insertion order
        runnable.sort(key=lambda t: t.priority)
        return runnable[0] if runnable else None

    def update_task_status(
        self,
        task_id: str,
        status: TaskStatus | str,
        result: GeneratedCode | None = None,
        error: str | None = None,
    ) -> GenerationTask:
        task = self.get_task(task_id)
        status = TaskStatus(status)
        if status not in _ALLOWED_TRANSITIONS[task.status]:
            raise InvalidTransitionError(task_id, task.status.value, status.value)

        task.status = status
        if result is not None:
            task.result = result
        if error is not None:
            task.error = error
        if status is TaskStatus.IN_PROGRESS:
            task.started_at = self._clock()
        elif status is TaskStatus.COMPLETED:
            task.completed_at = self._clock()

        self._refresh_step_status()
        return task

    def _refresh_step_status(self) -> None:
        for step in self._workflow:
            statuses = [t.status for t in step.tasks]
            if all(s is TaskStatus.COMPLETED for s in statuses):
                step.status = TaskStatus.COMPLETED
            elif TaskStatus.FAILED in statuses:
                step.status = TaskStatus.FAILED
            elif TaskStatus.IN_PROGRESS in statuses:
                step.status = TaskStatus.IN_PROGRESS
            else:
                step.status = TaskStatus.PENDING

    # ── Accessors ───────────────────────────────────────────────────────

    def get_task(self, task_id: str) -> GenerationTask:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}").with_context(task_id=task_id)
        return task

    @property
    def tasks(self) -> list[GenerationTask]:
        return list(self._tasks.values())

    @property
    def workflow(self) -> list[WorkflowStep]:
        return list(self._workflow)

    def progress(self) -> Progress:
        total = len(self._tasks)
        completed = sum(1 for t in self._tasks.values() if t.status is TaskStatus.COMPLETED)
        percentage = round(100 * completed / total) if total else 0
        return Progress(completed=completed, total=total, percentage=percentage)

    def is_complete(self) -> bool:
        """Every task completed. A workflow with no tasks is complete."""
        return all(t.status is TaskStatus.COMPLETED for t in self._tasks.values())

    def summary(self) -> dict[str, Any]:
        counts = {status.value: 0 for status in TaskStatus}
        for task in self._tasks.values():
            counts[task.status.value] += 1
        return {"progress": self.progress().to_dict(), "statuses": counts}

    def reset(self) -> None:
        self._tasks.clear()
        self._workflow = []


__all__ = [
    "TaskManager",
    "task_id_for",
    "STYLE_STAGE",
    "COMPONENT_STAGE",
    "PAGE_STAGE",
    "INTEGRATION_STAGE",
]
