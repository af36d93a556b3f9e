"""SQLModel tables."""
from todo_api.models.shared_list import SharedList, SharedListInvite, SharedListMember
from todo_api.models.task import Task
from todo_api.models.user import User

__all__ = ["SharedList", "SharedListInvite", "SharedListMember", "Task", "User"]
