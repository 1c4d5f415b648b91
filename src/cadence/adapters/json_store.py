"""File-based task storage adapter."""

import json
import logging
import os
import tempfile
from pathlib import Path

from cadence.core.codec import RuleDecodeError
from cadence.core.tasks import Task, TaskDecodeError

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The task file exists but cannot be read or written."""


class TaskNotFoundError(KeyError):
    """No task with the requested id."""


class JsonTaskStore:
    """
    JSON file task storage.

    Implements TaskRepository protocol. All tasks live in one document,
    rewritten atomically on every change.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read task file {self.path}: {e}")
            raise StoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            logger.error(f"Task file {self.path} has no 'tasks' list")
            raise StoreError(f"{self.path} is not a task file")
        return data["tasks"]

    def _write(self, records: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"tasks": records}, indent=2)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except OSError as e:
            Path(tmp).unlink(missing_ok=True)
            raise StoreError(f"Cannot write {self.path}: {e}") from e
        logger.debug(f"Wrote {len(records)} tasks to {self.path}")

    def list_tasks(self) -> list[Task]:
        """Fetch all tasks."""
        try:
            return [Task.from_dict(r) for r in self._read()]
        except (RuleDecodeError, TaskDecodeError) as e:
            logger.error(f"Corrupt task record in {self.path}: {e}")
            raise StoreError(f"Corrupt task record in {self.path}: {e}") from e

    def get(self, task_id: str) -> Task:
        for task in self.list_tasks():
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def save(self, task: Task) -> None:
        """Insert or replace a task by id."""
        records = [r for r in self._read() if r.get("id") != task.id]
        records.append(task.to_dict())
        self._write(records)

    def delete(self, task_id: str) -> None:
        records = self._read()
        remaining = [r for r in records if r.get("id") != task_id]
        if len(remaining) == len(records):
            raise TaskNotFoundError(task_id)
        self._write(remaining)
