"""Task repository interface."""

from typing import Protocol

from cadence.core.tasks import Task


class TaskRepository(Protocol):
    """Interface for loading and saving tasks in any backend."""

    def list_tasks(self) -> list[Task]:
        """Fetch all tasks."""
        ...

    def get(self, task_id: str) -> Task:
        """Fetch one task. Raises TaskNotFoundError if absent."""
        ...

    def save(self, task: Task) -> None:
        """Insert or replace a task by id."""
        ...

    def delete(self, task_id: str) -> None:
        """Remove a task. Raises TaskNotFoundError if absent."""
        ...
