"""
Task model

Rows of the ``tasks`` table are decoded here before they reach the board,
so the rest of the code never sees a raw row.
"""

import json
from typing import Optional, List, Any, Dict
from pydantic import BaseModel, Field, ConfigDict, ValidationError, field_validator
from lynk.utils.logger import logger


class ChecklistItem(BaseModel):
    """Checklist entry of a task; its position in the list is its order"""
    text: str = ""
    completed: bool = False


def _normalize_checklist(value: Any) -> List[Any]:
    """Accept null, a JSON string, and legacy plain-string items; unusable entries are dropped"""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else []
        except ValueError:
            logger.warning(f"Dropping checklist that is not valid JSON: {value[:100]!r}")
            return []
    if not isinstance(value, list):
        logger.warning(f"Dropping checklist of unexpected type {type(value).__name__}")
        return []

    items = []
    for item in value:
        if isinstance(item, str):
            # Legacy rows stored checklist entries as bare strings
            items.append(ChecklistItem(text=item))
        elif isinstance(item, ChecklistItem):
            items.append(item)
        else:
            try:
                items.append(ChecklistItem.model_validate(item))
            except ValidationError:
                logger.warning(f"Dropping malformed checklist item: {item!r}")
    return items


class Task(BaseModel):
    """Task model"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    id: int
    title: str
    description: str = ""
    owner: str = Field(alias="user_id")
    order_key: float = Field(0.0, alias="order_index")
    completed: bool = False
    checklist_items: List[ChecklistItem] = Field(default_factory=list)
    due_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    
    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: Any) -> Any:
        return "" if value is None else value
    
    @field_validator("completed", mode="before")
    @classmethod
    def _none_completed(cls, value: Any) -> Any:
        return False if value is None else value
    
    @field_validator("order_key", mode="before")
    @classmethod
    def _none_order_key(cls, value: Any) -> Any:
        return 0.0 if value is None else value
    
    @field_validator("checklist_items", mode="before")
    @classmethod
    def _legacy_checklist(cls, value: Any) -> Any:
        return _normalize_checklist(value)


class TaskCreate(BaseModel):
    """Task creation payload"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    title: str
    description: str = ""
    owner: str = Field(alias="user_id")
    order_key: float = Field(alias="order_index")
    completed: bool = False
    checklist_items: List[ChecklistItem] = Field(default_factory=list)
    
    def to_row(self) -> Dict[str, Any]:
        """Column/value mapping for an insert"""
        return self.model_dump(by_alias=True)


class TaskUpdate(BaseModel):
    """Partial update payload; unset fields are left alone by the store"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    title: Optional[str] = None
    description: Optional[str] = None
    order_key: Optional[float] = Field(None, alias="order_index")
    completed: Optional[bool] = None
    checklist_items: Optional[List[ChecklistItem]] = None
    updated_at: Optional[str] = None
    
    def to_row(self) -> Dict[str, Any]:
        """Column/value mapping containing only the fields being changed"""
        return self.model_dump(by_alias=True, exclude_none=True)
