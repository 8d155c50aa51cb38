"""
Pydantic models for tasks, tool arguments and workflow results.
"""
from .task_models import (
    Task,
    TaskStatus,
    TaskPriority,
    ProcessTasksRequest,
    QueryTasksRequest,
    TaskIdRequest,
    AddCommentRequest,
    UpdateTaskRequest,
)
from .result_models import ProcessingResult, TaskReport, BatchReport

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "ProcessTasksRequest",
    "QueryTasksRequest",
    "TaskIdRequest",
    "AddCommentRequest",
    "UpdateTaskRequest",
    "ProcessingResult",
    "TaskReport",
    "BatchReport",
]
