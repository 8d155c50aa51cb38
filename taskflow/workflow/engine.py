"""
Workflow engine - walks the tags of tagged tasks in priority order.

For every task the engine sorts the task's tags, folds over them carrying the
current persona, records one ProcessingResult per tag and removes each tag
whose action is removable (never in preview mode). Failures are isolated per
tag; only a failure to list the tasks aborts a batch.
"""
import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from taskflow.models.result_models import (
    BatchReport,
    ProcessingResult,
    TaskReport,
    STATUS_ERROR,
    STATUS_SKIPPED,
    STATUS_SUCCESS,
)
from taskflow.models.task_models import Task
from taskflow.monitoring import record_tag_result
from taskflow.storage.interface import TaskStore
from taskflow.tracing import add_span_attribute, trace_span
from taskflow.workflow.actions import (
    ACTION_PERSONA_SET,
    ALLOWED_TAG_FILTERS,
    ListAppend,
    PromptTrigger,
    resolve_action,
)
from taskflow.workflow.tags import TagKind, extract_persona, normalize_tag, sort_by_priority

logger = logging.getLogger(__name__)

NO_TASKS_MESSAGE = "No tasks with workflow tags found"


@dataclass(frozen=True)
class _TagWalk:
    """State carried from one tag to the next within a single task."""

    persona: Optional[str] = None


class WorkflowEngine:
    """
    Processes workflow tags on tasks from a TaskStore.

    Args:
        store: Task store used for listing tasks and removing tags
        metrics: Callback ``(action, status, preview)`` invoked once per tag result.
            Defaults to the Prometheus tag counter.
    """

    def __init__(self, store: TaskStore, metrics: Optional[Callable[[Optional[str], str, bool], None]] = None):
        self.store = store
        self.metrics = metrics or record_tag_result

    async def process_batch(
        self,
        limit: int = 10,
        preview_only: bool = False,
        tag_filter: Optional[str] = None,
    ) -> BatchReport:
        """
        Process up to ``limit`` tagged tasks.

        Args:
            limit: Maximum number of tasks to fetch (positive integer)
            preview_only: Report what would happen without removing any tag
            tag_filter: Only process this action tag across all tasks

        Returns:
            BatchReport with one TaskReport per task that had eligible tags

        Raises:
            ValueError: If limit or tag_filter is invalid
            StoreError: If the tasks cannot be listed
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        if tag_filter is not None:
            tag_filter = normalize_tag(tag_filter)
            if tag_filter not in ALLOWED_TAG_FILTERS:
                raise ValueError(
                    f"Invalid tag_filter '{tag_filter}'. Must be one of: {', '.join(ALLOWED_TAG_FILTERS)}"
                )

        with trace_span("workflow.process_batch", {
            "workflow.limit": limit,
            "workflow.preview": preview_only,
            "workflow.tag_filter": tag_filter,
        }):
            logger.info(
                f"Processing up to {limit} tasks"
                + (f" (tag filter: {tag_filter})" if tag_filter else "")
                + (" [preview]" if preview_only else "")
            )
            tasks = await self.store.list_tagged_tasks(limit)

            reports: List[TaskReport] = []
            for task in tasks:
                report = await self.process_task(task, preview_only, tag_filter)
                if report is not None:
                    reports.append(report)

            add_span_attribute("workflow.tasks_processed", len(reports))
            logger.info(f"Processed {len(reports)} of {len(tasks)} fetched tasks")

        if not reports:
            message = NO_TASKS_MESSAGE
            if tag_filter:
                message = f"No tasks with the '{tag_filter}' tag found"
            return BatchReport(
                preview=preview_only,
                tasks_processed=0,
                message=message,
                tag_filter=tag_filter,
            )

        return BatchReport(
            preview=preview_only,
            tasks_processed=len(reports),
            results=reports,
            tag_filter=tag_filter,
        )

    async def process_task(
        self,
        task: Task,
        preview_only: bool = False,
        tag_filter: Optional[str] = None,
    ) -> Optional[TaskReport]:
        """
        Walk one task's tags in priority order.

        Returns None when the task has no tag left after filtering.
        """
        tags = list(task.tags)
        if tag_filter:
            wanted = normalize_tag(tag_filter)
            tags = [t for t in tags if normalize_tag(t) == wanted]
        if not tags:
            return None

        walk = _TagWalk()
        results: List[ProcessingResult] = []
        for tag in sort_by_priority(tags):
            result: Optional[ProcessingResult] = None
            try:
                result, walk = await self._process_tag(task, tag, walk, preview_only)
                self.metrics(result.action, result.status, preview_only)
            except Exception as e:
                logger.warning(f"Failed to process tag '{tag}' on task {task.id}: {e}", exc_info=True)
                result = _failed(result or ProcessingResult(tag=tag, status=STATUS_ERROR), e)
            results.append(result)

        return TaskReport(task_id=task.id, title=task.title, url=task.url, processed_tags=results)

    async def _process_tag(self, task: Task, tag: str, walk: _TagWalk, preview_only: bool):
        kind = TagKind.from_tag(tag)

        if kind is TagKind.PERSONA:
            persona = extract_persona(tag)
            # The persona applies to later tags even if removal fails below
            walk = replace(walk, persona=persona)
            result = ProcessingResult(
                tag=tag,
                status=STATUS_SUCCESS,
                action=ACTION_PERSONA_SET,
                persona=persona,
                note="Would set persona and remove tag" if preview_only else "Persona set",
            )
            if not preview_only:
                result = await self._remove(task, tag, result)
            return result, walk

        spec = resolve_action(kind)
        carries_persona = isinstance(spec, (PromptTrigger, ListAppend))
        result = ProcessingResult(
            tag=tag,
            status=STATUS_SUCCESS if spec.removable else STATUS_SKIPPED,
            action=spec.action,
            prompt=spec.prompt_id,
            note=spec.describe(preview_only),
            persona=walk.persona if carries_persona else None,
        )
        if spec.removable and not preview_only:
            result = await self._remove(task, tag, result)
        return result, walk

    async def _remove(self, task: Task, tag: str, result: ProcessingResult) -> ProcessingResult:
        try:
            await self.store.remove_tag(task.id, tag)
        except Exception as e:
            logger.warning(f"Failed to remove tag '{tag}' from task {task.id}: {e}")
            return _failed(result, e)
        return result


def _failed(result: ProcessingResult, exc: Exception) -> ProcessingResult:
    return result.model_copy(update={"status": STATUS_ERROR, "error": str(exc), "note": None})
