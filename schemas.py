from pydantic import BaseModel, Field, model_validator
from typing import Optional, Any, List
from datetime import datetime

from ordering.types import Status


class BoardCreate(BaseModel):
    """Schema for creating a board"""
    name: str = Field(..., min_length=1, max_length=100)


class BoardUpdate(BaseModel):
    """Schema for renaming a board"""
    name: str = Field(..., min_length=1, max_length=100)


class BoardResponse(BaseModel):
    """Schema for board response"""
    id: str
    name: str
    user_id: str
    created_at: datetime
    role: Optional[str] = None

    class Config:
        from_attributes = True


class MemberCreate(BaseModel):
    """Share a board with a user, by id or by email"""
    user_id: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="after")
    def check_target(self):
        if not self.user_id and not self.email:
            raise ValueError("Either user_id or email is required")
        return self


class MemberResponse(BaseModel):
    """Schema for membership response"""
    id: str
    board_id: str
    user_id: str
    email: Optional[str] = None
    created_at: datetime


class TaskCreate(BaseModel):
    """Schema for creating a new task"""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    status: Status = Status.TODO
    position: Optional[float] = Field(None, allow_inf_nan=False)


class TaskUpdate(BaseModel):
    """Schema for updating a task"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)


class PositionUpdate(BaseModel):
    """Row-level status and position write"""
    status: Status
    position: float = Field(..., allow_inf_nan=False)
    sequence: Optional[int] = Field(None, ge=1)


class TaskResponse(BaseModel):
    """Schema for task response"""
    id: str
    board_id: str
    user_id: Optional[str]
    title: str
    description: Optional[str]
    status: Status
    position: Optional[float]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DraggableLocation(BaseModel):
    droppableId: Status
    index: int = Field(..., ge=0)


class DropRequest(BaseModel):
    """Drag-end event; a null destination means the drag was cancelled"""
    draggableId: str
    source: DraggableLocation
    destination: Optional[DraggableLocation] = None


class PositionWriteResponse(BaseModel):
    task_id: str
    status: Status
    position: float


class MoveResponse(BaseModel):
    """Result of a server-side drop"""
    noop: bool
    tasks: List[TaskResponse] = []
    writes: List[PositionWriteResponse] = []


class ApiResponse(BaseModel):
    """Standard API response wrapper"""
    success: bool
    data: Optional[Any] = None
    error: Optional[dict] = None
