"""
Pydantic models for tasks and task-related requests.
"""
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from taskflow.workflow.tags import ACTION_TAGS, normalize_tag


class TaskStatus(str, Enum):
    """Task status as stored in the Notion Status property."""
    READY = "Ready"
    IN_PROGRESS = "In Progress"
    DONE = "Done"
    UNKNOWN = "Unknown"


class TaskPriority(str, Enum):
    """Task priority as stored in the Notion Priority select."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# Statuses a caller may filter by or set
SETTABLE_STATUSES = [TaskStatus.READY.value, TaskStatus.IN_PROGRESS.value, TaskStatus.DONE.value]


def parse_status(value: Optional[str]) -> TaskStatus:
    for status in TaskStatus:
        if value == status.value:
            return status
    return TaskStatus.UNKNOWN


def parse_priority(value: Optional[str]) -> TaskPriority:
    for priority in TaskPriority:
        if value == priority.value:
            return priority
    return TaskPriority.MEDIUM


class Task(BaseModel):
    """A task read from the store. Read fresh for every call, never cached."""
    id: str
    url: Optional[str] = None
    title: str = "Untitled"
    description: str = ""
    status: TaskStatus = TaskStatus.UNKNOWN
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: List[str] = Field(default_factory=list)
    blocks: List[Dict[str, Any]] = Field(default_factory=list)
    full_content: str = ""
    created_time: Optional[str] = None
    last_edited_time: Optional[str] = None

    def image_urls(self) -> List[str]:
        """URLs of image blocks, in page order."""
        return [b["url"] for b in self.blocks if b.get("type") == "image" and b.get("url")]


def _validate_status(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if v not in SETTABLE_STATUSES:
        raise ValueError(f"Invalid status '{v}'. Must be one of: {', '.join(SETTABLE_STATUSES)}")
    return v


class ProcessTasksRequest(BaseModel):
    """Arguments of the process_tasks tool."""
    limit: int = Field(10, description="Maximum number of tasks to process", gt=0)
    preview_only: bool = Field(
        False,
        description="Preview what would be processed without removing tags",
        validation_alias=AliasChoices("preview_only", "dry_run", "dryRun"),
    )
    tag_filter: Optional[str] = Field(
        None,
        description="Process only this tag type across all tasks",
        validation_alias=AliasChoices("tag_filter", "specific_tag", "specificTag"),
    )

    @field_validator("tag_filter")
    @classmethod
    def validate_tag_filter(cls, v: Optional[str]) -> Optional[str]:
        """Validate tag_filter against the action vocabulary."""
        if v is None or not v.strip():
            return None
        if normalize_tag(v) not in ACTION_TAGS:
            raise ValueError(f"Invalid tag_filter '{v}'. Must be one of: {', '.join(ACTION_TAGS)}")
        return normalize_tag(v)


class QueryTasksRequest(BaseModel):
    """Arguments of the query_tasks tool."""
    status: Optional[str] = None
    has_tags: bool = Field(True, validation_alias=AliasChoices("has_tags", "hasMcpTags", "has_mcp_tags"))
    tag: Optional[str] = None
    limit: int = Field(100, gt=0, le=100)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        """Validate status enum."""
        return _validate_status(v)


class TaskIdRequest(BaseModel):
    """Arguments naming a single task."""
    task_id: str = Field(..., min_length=1, validation_alias=AliasChoices("task_id", "taskId"))


class AddCommentRequest(TaskIdRequest):
    """Arguments of the add_comment tool."""
    comment: str = Field(..., min_length=1)

    @field_validator("comment")
    @classmethod
    def validate_not_empty_or_whitespace(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment cannot be empty or contain only whitespace")
        return v


class UpdateTaskRequest(TaskIdRequest):
    """Arguments of the update_task tool."""
    description: Optional[str] = None
    append_description: Optional[str] = Field(
        None, validation_alias=AliasChoices("append_description", "appendDescription")
    )
    status: Optional[str] = None
    remove_tags: List[str] = Field(default_factory=list, validation_alias=AliasChoices("remove_tags", "removeTags"))

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        """Validate status enum."""
        return _validate_status(v)
