"""Shared list schemas."""
from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class SharedListCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)


class InviteRequest(BaseModel):
    email: EmailStr
    role: Literal["editor", "viewer"] = "editor"

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class MemberResponse(BaseModel):
    user_id: str
    username: str
    email: str
    role: str
    added_at: datetime


class InviteResponse(BaseModel):
    email: str
    role: str
    invited_by: str
    invited_at: datetime


class SharedListResponse(BaseModel):
    id: int
    name: str
    owner_id: str
    members: List[MemberResponse] = []
    pending_invites: List[InviteResponse] = []
    created_at: datetime
    updated_at: datetime
