from typing import Optional


class TodoError(Exception):
    """Base class for every failure the to-do stack reports.

    ``status_code`` is the HTTP status the error maps to on the wire, so the
    server can translate it into a response and the client can translate a
    response back into the same class.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(TodoError):
    status_code = 400


class NotFoundError(TodoError):
    status_code = 404

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class NetworkError(TodoError):
    """The request never produced an HTTP response."""

    status_code = 503


class ServerError(TodoError):
    """Non-2xx response without a more specific mapping."""
