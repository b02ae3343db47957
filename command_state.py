"""
CommandState schema for the LangGraph command pipeline.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from habit_models import Snapshot

class CommandState(BaseModel):
    command: str
    params: Dict[str, Any] = Field(default_factory=dict)
    output_format: str = "text"  # text, markdown or json
    store_path: Optional[str] = None
    now: Optional[datetime] = None
    snapshot: Optional[Snapshot] = None
    decayed: int = 0
    result: Optional[Dict[str, Any]] = None
    audit_log: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    exit_code: int = 0
    response: Optional[str] = None
    step: Optional[str] = None  # Current node

    class Config:
        arbitrary_types_allowed = True
        extra = "forbid"
