from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from domain.entities import Task


class TodoCreate(BaseModel):
    title: str = ""


class TodoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    completed: bool
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_task(cls, task: Task) -> "TodoResponse":
        return cls(id=task.id, title=task.title, completed=task.completed, created_at=task.created_at)

    def to_task(self) -> Task:
        return Task(id=self.id, title=self.title, completed=self.completed, created_at=self.created_at)


class ClearCompletedResponse(BaseModel):
    removed: int


class ErrorResponse(BaseModel):
    error: str
