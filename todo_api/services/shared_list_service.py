"""Shared list service: membership, invitations and list todos."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from todo_api.models.shared_list import SharedList, SharedListInvite, SharedListMember
from todo_api.models.task import Task
from todo_api.models.user import User

logger = logging.getLogger(__name__)


class SharedListNotFoundError(LookupError):
    pass


class SharedListAccessError(PermissionError):
    pass


class SharedListConflictError(ValueError):
    pass


class SharedListService:
    """Service class for collaborative lists."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, list_id: int) -> SharedList:
        shared_list = self.session.get(SharedList, list_id)
        if shared_list is None:
            raise SharedListNotFoundError(list_id)
        return shared_list

    def _member(self, list_id: int, user_id: str) -> Optional[SharedListMember]:
        statement = (
            select(SharedListMember)
            .where(SharedListMember.list_id == list_id)
            .where(SharedListMember.user_id == user_id)
        )
        return self.session.exec(statement).first()

    def get_role(self, list_id: int, user_id: str) -> Optional[str]:
        member = self._member(list_id, user_id)
        return member.role if member else None

    def is_member(self, list_id: int, user_id: str) -> bool:
        return self._member(list_id, user_id) is not None

    def can_edit(self, list_id: int, user_id: str) -> bool:
        return self.get_role(list_id, user_id) in ("owner", "editor")

    def to_dict(self, shared_list: SharedList) -> Dict[str, Any]:
        """Response shape with members and pending invites expanded."""
        members_statement = (
            select(SharedListMember, User)
            .join(User, User.id == SharedListMember.user_id)
            .where(SharedListMember.list_id == shared_list.id)
            .order_by(SharedListMember.added_at, SharedListMember.id)
        )
        invites_statement = (
            select(SharedListInvite)
            .where(SharedListInvite.list_id == shared_list.id)
            .order_by(SharedListInvite.invited_at)
        )
        return {
            "id": shared_list.id,
            "name": shared_list.name,
            "owner_id": shared_list.owner_id,
            "members": [
                {
                    "user_id": user.id,
                    "username": user.username,
                    "email": user.email,
                    "role": member.role,
                    "added_at": member.added_at,
                }
                for member, user in self.session.exec(members_statement).all()
            ],
            "pending_invites": [
                {
                    "email": invite.email,
                    "role": invite.role,
                    "invited_by": invite.invited_by,
                    "invited_at": invite.invited_at,
                }
                for invite in self.session.exec(invites_statement).all()
            ],
            "created_at": shared_list.created_at,
            "updated_at": shared_list.updated_at,
        }

    def list_for_user(self, user_id: str) -> List[SharedList]:
        """All lists the user belongs to, most recently updated first."""
        statement = (
            select(SharedList)
            .join(SharedListMember, SharedListMember.list_id == SharedList.id)
            .where(SharedListMember.user_id == user_id)
            .order_by(SharedList.updated_at.desc(), SharedList.id.desc())
        )
        return list(self.session.exec(statement).all())

    def get_for_member(self, list_id: int, user_id: str) -> SharedList:
        shared_list = self._get(list_id)
        if not self.is_member(list_id, user_id):
            raise SharedListAccessError("Access denied")
        return shared_list

    def create(self, owner_id: str, name: str) -> SharedList:
        """Create a list; the owner becomes its first member."""
        shared_list = SharedList(name=name, owner_id=owner_id)
        self.session.add(shared_list)
        self.session.flush()
        self.session.add(SharedListMember(list_id=shared_list.id, user_id=owner_id, role="owner"))
        self.session.commit()
        self.session.refresh(shared_list)
        logger.info("Shared list created: owner=%s list=%s", owner_id, shared_list.id)
        return shared_list

    def _touch(self, shared_list: SharedList):
        shared_list.updated_at = datetime.utcnow()
        self.session.add(shared_list)

    def invite(self, list_id: int, inviter_id: str, email: str, role: str = "editor") -> SharedList:
        """
        Invite by email. Existing users join immediately; unknown emails are
        kept as pending invites and claimed when that email registers.
        """
        shared_list = self._get(list_id)
        if shared_list.owner_id != inviter_id:
            raise SharedListAccessError("Only the list owner can invite members")

        invited_user = self.session.exec(select(User).where(User.email == email)).first()
        if invited_user is not None:
            if self.is_member(list_id, invited_user.id):
                raise SharedListConflictError("User is already a member of this list")
            self.session.add(SharedListMember(list_id=list_id, user_id=invited_user.id, role=role))
        else:
            existing = self.session.exec(
                select(SharedListInvite)
                .where(SharedListInvite.list_id == list_id)
                .where(SharedListInvite.email == email)
            ).first()
            if existing is not None:
                raise SharedListConflictError("User has already been invited")
            self.session.add(SharedListInvite(list_id=list_id, email=email, role=role, invited_by=inviter_id))

        self._touch(shared_list)
        self.session.commit()
        self.session.refresh(shared_list)
        logger.info("Shared list invite: list=%s email=%s", list_id, email)
        return shared_list

    def claim_invites(self, user: User) -> int:
        """Turn pending invites for the user's email into memberships."""
        invites = self.session.exec(select(SharedListInvite).where(SharedListInvite.email == user.email)).all()
        for invite in invites:
            if not self.is_member(invite.list_id, user.id):
                self.session.add(SharedListMember(list_id=invite.list_id, user_id=user.id, role=invite.role))
            self.session.delete(invite)
        if invites:
            self.session.commit()
        return len(invites)

    def remove_member(self, list_id: int, requester_id: str, member_id: str) -> SharedList:
        """Owners remove anyone but themselves; members may remove themselves."""
        shared_list = self._get(list_id)
        is_owner = shared_list.owner_id == requester_id
        if not is_owner and requester_id != member_id:
            raise SharedListAccessError("Access denied")
        if member_id == shared_list.owner_id:
            raise SharedListConflictError("Cannot remove the list owner")

        member = self._member(list_id, member_id)
        if member is not None:
            self.session.delete(member)
        self._touch(shared_list)
        self.session.commit()
        self.session.refresh(shared_list)
        return shared_list

    def delete(self, list_id: int, requester_id: str):
        """Delete the list together with every todo on it."""
        shared_list = self._get(list_id)
        if shared_list.owner_id != requester_id:
            raise SharedListAccessError("Only the list owner can delete this list")

        for model, column in (
            (Task, Task.shared_list_id),
            (SharedListMember, SharedListMember.list_id),
            (SharedListInvite, SharedListInvite.list_id),
        ):
            for row in self.session.exec(select(model).where(column == list_id)).all():
                self.session.delete(row)
        self.session.flush()
        self.session.delete(shared_list)
        self.session.commit()
        logger.info("Shared list deleted with its todos: list=%s", list_id)

    def list_todos(
        self,
        list_id: int,
        user_id: str,
        category: Optional[str] = None,
        completed: Optional[bool] = None,
        priority: Optional[str] = None,
    ) -> List[Task]:
        """Todos on a list, visible to members only."""
        self.get_for_member(list_id, user_id)

        statement = select(Task).where(Task.shared_list_id == list_id)
        if category and category != "all":
            statement = statement.where(Task.category == category)
        if completed is not None:
            statement = statement.where(Task.completed == completed)
        if priority and priority != "all":
            statement = statement.where(Task.priority == priority)
        statement = statement.order_by(Task.created_at.desc(), Task.id.desc())
        return list(self.session.exec(statement).all())
