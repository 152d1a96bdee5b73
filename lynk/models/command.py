"""
Request models for board commands sent by the task page
"""

from typing import List
from pydantic import BaseModel, Field
from lynk.models.task import ChecklistItem


class TaskForm(BaseModel):
    """Add/edit dialog contents"""
    title: str = ""
    description: str = ""
    checklist_items: List[ChecklistItem] = Field(default_factory=list)


class CompletionChange(BaseModel):
    """Checkbox state for a task or checklist item"""
    completed: bool


class MoveCommand(BaseModel):
    """Drag end: task dropped at a new position"""
    task_id: int
    to_index: int = Field(ge=0)
