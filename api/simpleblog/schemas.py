from __future__ import annotations

import re
from datetime import datetime
from typing import Generic, Literal, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import ReportReason, ReportStatus, ReportType

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


class Problem(BaseModel):
    """Error body returned for every failed request."""

    kind: str
    title: str
    status: int
    detail: str | None = None
    errors: dict[str, list[str]] | None = None


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Generic paginated response."""

    items: list[T]
    current_page: int
    total_pages: int
    total_count: int


def _check_username(value: str) -> str:
    value = value.strip()
    if not _USERNAME_RE.match(value):
        raise ValueError("Username may only contain letters, numbers and underscores")
    return value


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("Please provide a valid email")
    return value


# ============================================================================
# USERS & AUTH
# ============================================================================


class AuthorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str


class UserPublic(BaseModel):
    """Public user profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    role: str
    bio: str | None = None
    has_avatar: bool = False
    created_at: datetime


class UserPrivate(UserPublic):
    """Profile as seen by its owner or an admin."""

    email: str


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    bio: str | None = Field(None, max_length=500)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return _check_username(value)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _check_email(value)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AuthResponse(BaseModel):
    token: str
    user: UserPrivate


class ProfileUpdate(BaseModel):
    username: str | None = Field(None, min_length=3, max_length=30)
    email: str | None = Field(None, max_length=255)
    bio: str | None = Field(None, max_length=500)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str | None) -> str | None:
        return None if value is None else _check_username(value)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return None if value is None else _check_email(value)


class RoleUpdate(BaseModel):
    role: Literal["user", "admin"]


# ============================================================================
# BLOGS
# ============================================================================


class BlogBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    excerpt: str = Field(..., min_length=1, max_length=300)
    cover_image: str = Field("", max_length=500)
    tags: list[str] = Field(default_factory=list)
    published: bool = False

    @field_validator("title", "excerpt")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str]) -> list[str]:
        return [tag.strip() for tag in value if tag.strip()]


class BlogCreate(BlogBase):
    pass


class BlogUpdate(BaseModel):
    """Partial blog update; omitted fields are left as they are."""

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1)
    excerpt: str | None = Field(None, min_length=1, max_length=300)
    cover_image: str | None = Field(None, max_length=500)
    tags: list[str] | None = None
    published: bool | None = None

    @field_validator("title", "excerpt")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("Must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [tag.strip() for tag in value if tag.strip()]


class Blog(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str
    content: str
    excerpt: str
    cover_image: str
    tags: list[str]
    author: AuthorSummary | None = None
    published: bool
    views: int
    read_time: int
    likes_count: int = 0
    is_liked: bool = False
    created_at: datetime
    updated_at: datetime | None = None


class BlogRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str


# ============================================================================
# COMMENTS
# ============================================================================


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)
    parent_comment_id: UUID | None = None

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment content is required")
        return value


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment content is required")
        return value


class Comment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    author: AuthorSummary | None = None
    blog_id: UUID
    parent_comment_id: UUID | None = None
    likes_count: int = 0
    is_liked: bool = False
    created_at: datetime
    updated_at: datetime | None = None
    replies: list[Comment] = Field(default_factory=list)


class AdminComment(Comment):
    blog: BlogRef | None = None


class LikeState(BaseModel):
    is_liked: bool
    likes_count: int


# ============================================================================
# REPORTS
# ============================================================================


class ReportCreate(BaseModel):
    type: ReportType
    reason: ReportReason
    description: str | None = Field(None, max_length=1000)
    reported_item_id: UUID | None = None


class ReportStatusUpdate(BaseModel):
    status: ReportStatus
    admin_notes: str | None = Field(None, max_length=1000)


class Report(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    reason: str
    description: str | None = None
    reporter: AuthorSummary | None = None
    reported_item_id: UUID | None = None
    reported_item_model: str | None = None
    status: str
    admin_notes: str | None = None
    reviewed_by: AuthorSummary | None = None
    reviewed_at: datetime | None = None
    resolved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ReportWithDisplay(Report):
    display_title: str
    display_author: str
    display_content: str


class ReportStats(BaseModel):
    total: int
    by_status: dict[str, int]
    by_type: dict[str, int]
    by_reason: dict[str, int]


# ============================================================================
# ADMIN
# ============================================================================


class DashboardStats(BaseModel):
    total_users: int
    total_blogs: int
    total_comments: int
    total_reports: int
    pending_reports: int
    recent_users: list[UserPrivate]
    recent_blogs: list[Blog]
    recent_reports: list[Report]


class AuditLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    actor: AuthorSummary | None = None
    action: str
    target_type: str | None = None
    target_id: UUID | None = None
    note: str | None = None
    created_at: datetime


class HealthResponse(BaseModel):
    status: str
    uptime_s: float
