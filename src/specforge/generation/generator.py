"""
Code generator: the orchestrator of one generation run.

Manifesto:
    A specification edit should regenerate exactly what it touched. The
    generator wires the pipeline together so that unchanged entities are
    reused, cached page configurations skip the provider, and one failing
    task never takes the rest of the run down with it.

    - **Incremental:** only changed or never-generated entities get tasks
    - **Stage ordered:** styles, then components, then pages
    - **Task scoped failures:** errors land on the task, not the run
    - **Cancellable:** a caller event aborts in-flight provider calls

Architecture:
    ::

        generate(spec, previous_spec, existing_code, cancel)
          │
          ├─ 1. CodeManager.from_generated(existing_code)
          ├─ 2. ChangeDetector.detect_changes ──> changed ids, deleted ids
          │        └─ files of deleted entities are removed
          ├─ 3. TaskManager.build_workflow
          ├─ 4. for step in workflow:                      (stage barrier)
          │        gather(_run_task(t) for runnable t)     (≤ max_concurrency)
          │          ├─ a.  reuse existing_code (unchanged entity)
          │          ├─ a'. reuse GenerationCache[fingerprint_page]
          │          ├─ b.  style guide → render_stylesheet (no provider call)
          │          │      page/component → PromptManager → provider
          │          ├─ c.  parse_response
          │          ├─ d.  CodeManager.write_files        (under write lock)
          │          └─ e.  GeneratedCode + metadata
          ├─ 5. completed / failed per task; blocked tasks stay pending
          └─ 6. {entity_id: GeneratedCode}  (+ unchanged existing_code)

Examples:
    >>> generator = CodeGenerator(MockLLMProvider(default_response=BLOCKS))
    >>> code = await generator.generate(spec)
    >>> generator.progress().percentage
    100
    >>> sorted(generator.export_for_sandbox())
    ['app/globals.css', 'app/page.tsx', 'components/button.tsx']

Guardrails:
    ❌ DON'T: Run two generate() calls on one generator at the same time
    ✅ DO: Feed the returned map back as existing_code on the next run
    ✅ DO: Check is_complete() - a run with failed tasks still returns

Tags:
    orchestrator, code-generation, incremental, asyncio, specforge

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from specforge.core.errors import (
    CancelledError,
    GenerationServiceError,
    NotFoundError,
    UnsupportedEntityError,
)
from specforge.core.logging import LogContext, get_logger
from specforge.core.settings import SpecforgeSettings, get_settings
from specforge.generation.cache import GenerationCache
from specforge.generation.change_detector import ChangeDetector
from specforge.generation.code_manager import CodeManager
from specforge.generation.parser import parse_response
from specforge.generation.prompts import PromptManager
from specforge.generation.stylesheet import render_stylesheet, stylesheet_path
from specforge.generation.task_manager import TaskManager
from specforge.generation.types import (
    ChangeKind,
    ChangeRecord,
    FileKind,
    GeneratedCode,
    GeneratedFile,
    GenerationContext,
    GenerationMetadata,
    GenerationTask,
    Progress,
    TaskKind,
    TaskStatus,
    WorkflowStep,
)
from specforge.llm.budget import TokenBudget
from specforge.llm.protocol import LLMProvider, LLMResponse, Message
from specforge.spec.fingerprint import fingerprint_entity, fingerprint_page
from specforge.spec.models import Page, Specification, StyleGuide

logger = get_logger(__name__)

TEMPLATE_MODEL = "template"
CANCELLED_MESSAGE = "Generation cancelled"


class CodeGenerator:
    """Turns a specification into generated files, incrementally."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        settings: SpecforgeSettings | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        max_concurrency: int | None = None,
        request_timeout_seconds: float | None = None,
        prompts: PromptManager | None = None,
        cache: GenerationCache | None = None,
        budget: TokenBudget | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        settings = settings or get_settings()
        self._provider = provider
        self._model = model or settings.model
        self._temperature = temperature if temperature is not None else settings.temperature
        self._max_tokens = max_tokens or settings.max_tokens
        self._max_concurrency = max_concurrency or settings.max_concurrency
        self._timeout = request_timeout_seconds or settings.request_timeout_seconds
        self._prompts = prompts or PromptManager()
        self._cache = cache
        if budget is None and settings.token_budget:
            budget = TokenBudget(max_tokens=settings.token_budget)
        self._budget = budget
        self._clock = clock or (lambda: datetime.now(UTC))

        self._detector = ChangeDetector()
        self._task_manager = TaskManager(clock=self._clock)
        self._code_manager = CodeManager(clock=self._clock)
        self._results: dict[str, GeneratedCode] = {}
        self._last_changes: list[ChangeRecord] = []

    # ── Public API ──────────────────────────────────────────────────────

    async def generate(
        self,
        spec: Specification,
        previous_spec: Specification | None = None,
        existing_code: Mapping[str, GeneratedCode] | None = None,
        *,
        cancel: asyncio.Event | None = None,
    ) -> dict[str, GeneratedCode]:
        """Run one generation pass and return ``entity_id → GeneratedCode``."""
        cancel = cancel or asyncio.Event()
        existing = dict(existing_code or {})
        run_id = uuid.uuid4().hex[:12]

        async with LogContext(run_id=run_id):
            self._code_manager = CodeManager.from_generated(existing, clock=self._clock)
            self._task_manager = TaskManager(clock=self._clock)

            changes = self._detector.detect_changes(spec, previous_spec)
            self._last_changes = changes
            changed_ids = {c.entity_id for c in changes if c.kind is not ChangeKind.DELETED}
            deleted_ids = {c.entity_id for c in changes if c.kind is ChangeKind.DELETED}
            for entity_id in deleted_ids:
                if entity_id in existing:
                    self._prune(existing.pop(entity_id), keep=set(), owners=existing)

            context = GenerationContext(
                spec=spec,
                changed_entity_ids=changed_ids,
                previous_spec=previous_spec,
                existing_code=existing if existing_code is not None else None,
            )
            workflow = self._task_manager.build_workflow(context)
            scheduled = {t.entity_id for t in self._task_manager.tasks}

            live_ids = {e.id for e in spec.all_entities()}
            self._results = {
                entity_id: code
                for entity_id, code in existing.items()
                if entity_id in live_ids and entity_id not in scheduled
            }

            logger.info(
                "generation.start",
                entities=len(live_ids),
                changed=len(changed_ids),
                deleted=len(deleted_ids),
                tasks=len(scheduled),
            )

            write_lock = asyncio.Lock()
            semaphore = asyncio.Semaphore(self._max_concurrency)
            for step in workflow:
                if cancel.is_set():
                    self._fail_pending(CANCELLED_MESSAGE)
                    logger.warning("generation.cancelled", step=step.name)
                    break
                await self._run_step(step, spec, existing, cancel, semaphore, write_lock)

            logger.info(
                "generation.complete",
                files=len(self._code_manager),
                **self._task_manager.summary(),
            )
        return dict(self._results)

    # ── Execution ───────────────────────────────────────────────────────

    async def _run_step(
        self,
        step: WorkflowStep,
        spec: Specification,
        existing: dict[str, GeneratedCode],
        cancel: asyncio.Event,
        semaphore: asyncio.Semaphore,
        write_lock: asyncio.Lock,
    ) -> None:
        runnable: list[GenerationTask] = []
        for task in step.tasks:
            if self._task_manager.dependencies_satisfied(task):
                runnable.append(task)
            else:
                logger.warning(
                    "task.blocked",
                    task_id=task.id,
                    failed_dependencies=self._task_manager.failed_dependencies(task),
                )

        logger.debug("step.start", step=step.name, tasks=len(runnable))
        await asyncio.gather(
            *(
                self._run_task(task, spec, existing, cancel, semaphore, write_lock)
                for task in runnable
            )
        )

    async def _run_task(
        self,
        task: GenerationTask,
        spec: Specification,
        existing: dict[str, GeneratedCode],
        cancel: asyncio.Event,
        semaphore: asyncio.Semaphore,
        write_lock: asyncio.Lock,
    ) -> None:
        try:
            async with semaphore:
                if cancel.is_set():
                    self._fail(task, CancelledError())
                    return
                self._task_manager.update_task_status(task.id, TaskStatus.IN_PROGRESS)
                logger.debug("task.started", task_id=task.id, kind=task.kind.value)

                code, from_cache = await self._produce(task, spec, cancel)

                async with write_lock:
                    if cancel.is_set():
                        raise CancelledError()
                    self._code_manager.write_files(code.files)
                    previous = existing.get(task.entity_id)
                    if previous is not None:
                        # code written earlier in this run outranks the previous run's
                        owners = {**existing, **self._results}
                        owners.pop(task.entity_id, None)
                        self._prune(previous, keep={f.path for f in code.files}, owners=owners)
                    self._complete(task, code)

                page = spec.find_page(task.entity_id)
                if self._cache is not None and page is not None and not from_cache:
                    self._cache.put(fingerprint_page(spec, page.id), page, code)
        except asyncio.CancelledError:
            self._fail(task, CancelledError())
            raise
        except Exception as e:
            self._fail(task, e)

    async def _produce(
        self, task: GenerationTask, spec: Specification, cancel: asyncio.Event
    ) -> tuple[GeneratedCode, bool]:
        """Generated code for one task, and whether it came from the cache."""
        if task.kind is TaskKind.STYLE_GUIDE:
            style = next((s for s in spec.styles if s.id == task.entity_id), None)
            if style is None:
                raise NotFoundError(f"Style guide not found: {task.entity_id}").with_context(
                    entity_id=task.entity_id
                )
            return self._render_style(style, spec), False

        if task.kind in (TaskKind.COMPONENT, TaskKind.PAGE):
            page = spec.find_page(task.entity_id)
            if page is None:
                raise NotFoundError(f"Page not found: {task.entity_id}").with_context(
                    entity_id=task.entity_id
                )
            if self._cache is not None:
                entry = self._cache.get(fingerprint_page(spec, page.id))
                if entry is not None:
                    logger.info("task.cache_hit", task_id=task.id)
                    return entry.generated_code, True
            return await self._generate_page(page, spec, cancel), False

        raise UnsupportedEntityError(
            f"No generator for task kind '{task.kind.value}'", field="kind", value=task.kind.value
        ).with_context(task_id=task.id)

    def _render_style(self, style: StyleGuide, spec: Specification) -> GeneratedCode:
        path = stylesheet_path(style, spec)
        return GeneratedCode(
            files=(GeneratedFile(path=path, content=render_stylesheet(style), kind=FileKind.STYLE),),
            dependency_entity_ids=(),
            metadata=GenerationMetadata(
                entity_id=style.id,
                content_fingerprint=fingerprint_entity(style),
                generated_at=self._clock(),
                model_identifier=TEMPLATE_MODEL,
            ),
        )

    async def _generate_page(
        self, page: Page, spec: Specification, cancel: asyncio.Event
    ) -> GeneratedCode:
        messages = self._prompts.messages_for(page, spec)
        if self._budget is not None:
            self._budget.check()

        response = await self._call_provider(messages, cancel, entity_id=page.id)
        if self._budget is not None:
            self._budget.record(response.usage, label=page.id)

        files = parse_response(response.content, page)
        dependencies = [c.id for c in spec.referenced_components(page)]
        dependencies += [c.id for c in spec.referenced_contexts(page)]
        return GeneratedCode(
            files=tuple(files),
            dependency_entity_ids=tuple(dependencies),
            metadata=GenerationMetadata(
                entity_id=page.id,
                content_fingerprint=fingerprint_entity(page),
                generated_at=self._clock(),
                model_identifier=response.model,
                tokens_used=response.usage.total_tokens,
            ),
        )

    async def _call_provider(
        self, messages: list[Message], cancel: asyncio.Event, *, entity_id: str
    ) -> LLMResponse:
        """Provider call raced against the cancel event and the timeout."""
        call = asyncio.ensure_future(
            self._provider.complete(
                messages,
                self._model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        )
        cancelled = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {call, cancelled},
                timeout=self._timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            cancelled.cancel()

        if call in done:
            return call.result()

        call.cancel()
        if cancel.is_set():
            raise CancelledError().with_context(entity_id=entity_id)
        raise GenerationServiceError(
            f"Text-generation call timed out after {self._timeout:g}s"
        ).with_context(entity_id=entity_id)

    # ── Bookkeeping ─────────────────────────────────────────────────────

    def _complete(self, task: GenerationTask, code: GeneratedCode) -> None:
        self._task_manager.update_task_status(task.id, TaskStatus.COMPLETED, result=code)
        self._results[task.entity_id] = code
        logger.info("task.completed", task_id=task.id, files=len(code.files))

    def _fail(self, task: GenerationTask, error: BaseException) -> None:
        if task.status.is_terminal:
            return
        message = str(error) or type(error).__name__
        self._task_manager.update_task_status(task.id, TaskStatus.FAILED, error=message)
        if isinstance(error, CancelledError):
            logger.warning("task.cancelled", task_id=task.id)
        else:
            logger.error(
                "task.failed",
                task_id=task.id,
                error_type=type(error).__name__,
                error=message,
            )

    def _fail_pending(self, message: str) -> None:
        for task in self._task_manager.tasks:
            if task.status is TaskStatus.PENDING:
                self._task_manager.update_task_status(task.id, TaskStatus.FAILED, error=message)

    def _prune(
        self,
        previous: GeneratedCode,
        *,
        keep: set[str],
        owners: Mapping[str, GeneratedCode],
    ) -> None:
        """Drop files of ``previous`` that nothing else claims any more."""
        claimed = {f.path for code in owners.values() for f in code.files} | keep
        for generated in previous.files:
            if generated.path not in claimed and self._code_manager.has_file(generated.path):
                self._code_manager.delete_file(generated.path)

    # ── Accessors ───────────────────────────────────────────────────────

    @property
    def code_manager(self) -> CodeManager:
        return self._code_manager

    @property
    def task_manager(self) -> TaskManager:
        return self._task_manager

    @property
    def cache(self) -> GenerationCache | None:
        return self._cache

    @property
    def budget(self) -> TokenBudget | None:
        return self._budget

    @property
    def last_changes(self) -> list[ChangeRecord]:
        return list(self._last_changes)

    @property
    def tasks(self) -> list[GenerationTask]:
        return self._task_manager.tasks

    def export_for_sandbox(self) -> dict[str, str]:
        return self._code_manager.export_for_sandbox()

    def file_tree(self) -> dict[str, Any]:
        return self._code_manager.file_tree()

    def workflow(self) -> list[WorkflowStep]:
        return self._task_manager.workflow

    def progress(self) -> Progress:
        return self._task_manager.progress()

    def is_complete(self) -> bool:
        return self._task_manager.is_complete()


__all__ = ["CodeGenerator", "TEMPLATE_MODEL", "CANCELLED_MESSAGE"]
