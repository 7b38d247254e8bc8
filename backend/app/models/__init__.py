"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from app.models.columns import BoardColumn
from app.models.tasks import Task
from app.models.users import User

__all__ = [
    "BoardColumn",
    "Task",
    "User",
]
