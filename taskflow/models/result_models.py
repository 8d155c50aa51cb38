"""
Result models produced by the workflow engine.
"""
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"
STATUS_SKIPPED = "skipped"


class ProcessingResult(BaseModel):
    """Outcome of processing one tag on one task."""
    tag: str
    status: str
    action: Optional[str] = None
    prompt: Optional[str] = None
    note: Optional[str] = None
    persona: Optional[str] = None
    error: Optional[str] = None


class TaskReport(BaseModel):
    """Per-task section of a batch report."""
    task_id: str
    title: str
    url: Optional[str] = None
    processed_tags: List[ProcessingResult] = Field(default_factory=list)


class BatchReport(BaseModel):
    """Result of one process_tasks call."""
    success: bool = True
    preview: bool = False
    tasks_processed: int = 0
    results: List[TaskReport] = Field(default_factory=list)
    message: Optional[str] = None
    tag_filter: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
