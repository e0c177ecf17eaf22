from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# ENUMERATIONS
# ============================================================================


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class ReportType(str, Enum):
    ARTICLE = "article"
    COMMENT = "comment"
    USER = "user"
    GENERAL = "general"


class ReportReason(str, Enum):
    SPAM = "spam"
    HARASSMENT = "harassment"
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    COPYRIGHT_VIOLATION = "copyright_violation"
    MISINFORMATION = "misinformation"
    HATE_SPEECH = "hate_speech"
    OTHER = "other"


class ReportStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class TargetKind(str, Enum):
    """Entity a report points at. Values double as the stored model tag."""

    BLOG = "Blog"
    COMMENT = "Comment"
    USER = "User"


REPORT_TYPE_TARGETS: dict[ReportType, TargetKind] = {
    ReportType.ARTICLE: TargetKind.BLOG,
    ReportType.COMMENT: TargetKind.COMMENT,
    ReportType.USER: TargetKind.USER,
}


@dataclass(frozen=True)
class ReportTarget:
    """Polymorphic report target: which kind of entity, and its id."""

    kind: TargetKind
    id: uuid.UUID


# ============================================================================
# CORE ENTITIES
# ============================================================================


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(10), nullable=False, default=Role.USER.value, index=True)
    bio = Column(Text, nullable=True)

    # Raw avatar bytes; served back with the stored content type.
    avatar = Column(LargeBinary, nullable=True)
    avatar_content_type = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    blogs = relationship("Blog", back_populates="author")
    comments = relationship("Comment", back_populates="author")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @property
    def has_avatar(self) -> bool:
        return self.avatar is not None


class Blog(Base):
    __tablename__ = "blogs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(String(300), nullable=False)
    cover_image = Column(String(500), nullable=False, default="")
    author_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    published = Column(Boolean, nullable=False, default=False, index=True)
    views = Column(Integer, nullable=False, default=0)
    read_time = Column(Integer, nullable=False, default=1)  # minutes

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    author = relationship("User", back_populates="blogs")
    tag_rows = relationship(
        "BlogTag",
        order_by="BlogTag.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_blogs_published_created", published, created_at.desc()),
        Index("ix_blogs_author_created", author_id, created_at.desc()),
    )

    @property
    def tags(self) -> list[str]:
        return [row.name for row in self.tag_rows]

    @tags.setter
    def tags(self, names: list[str]) -> None:
        self.tag_rows = [BlogTag(position=i, name=name) for i, name in enumerate(names)]


class BlogTag(Base):
    """One entry of a blog's ordered tag list."""

    __tablename__ = "blog_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    blog_id = Column(Uuid, ForeignKey("blogs.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(50), nullable=False, index=True)


class BlogLike(Base):
    """Membership row of a blog's like set."""

    __tablename__ = "blog_likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    blog_id = Column(Uuid, ForeignKey("blogs.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("blog_id", "user_id", name="uq_blog_likes_blog_user"),)


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    content = Column(Text, nullable=False)
    author_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    blog_id = Column(Uuid, ForeignKey("blogs.id"), nullable=False, index=True)
    parent_comment_id = Column(Uuid, ForeignKey("comments.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    author = relationship("User", back_populates="comments")
    blog = relationship("Blog")
    parent = relationship("Comment", remote_side=[id])

    __table_args__ = (Index("ix_comments_blog_created", blog_id, created_at.desc()),)


class CommentLike(Base):
    """Membership row of a comment's like set."""

    __tablename__ = "comment_likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    comment_id = Column(Uuid, ForeignKey("comments.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("comment_id", "user_id", name="uq_comment_likes_comment_user"),)


# ============================================================================
# MODERATION
# ============================================================================


class Report(Base):
    """User-submitted moderation report.

    The target is polymorphic: ``reported_item_id`` holds the id and
    ``reported_item_model`` names the table it lives in. Both are null for
    general complaints. Use ``target`` rather than the raw columns.
    """

    __tablename__ = "reports"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(20), nullable=False, index=True)
    reason = Column(String(40), nullable=False)
    description = Column(Text, nullable=True)
    reporter_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    reported_item_id = Column(Uuid, nullable=True)
    reported_item_model = Column(String(20), nullable=True)

    status = Column(String(20), nullable=False, default=ReportStatus.PENDING.value)
    admin_notes = Column(Text, nullable=True)
    reviewed_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    reporter = relationship("User", foreign_keys=[reporter_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])

    __table_args__ = (
        Index("ix_reports_status_created", status, created_at.desc()),
        Index("ix_reports_type_status", type, status),
        Index("ix_reports_target", reported_item_model, reported_item_id),
    )

    @property
    def target(self) -> ReportTarget | None:
        if self.reported_item_id is None or self.reported_item_model is None:
            return None
        return ReportTarget(kind=TargetKind(self.reported_item_model), id=self.reported_item_id)

    @target.setter
    def target(self, value: ReportTarget | None) -> None:
        if value is None:
            self.reported_item_id = None
            self.reported_item_model = None
        else:
            self.reported_item_id = value.id
            self.reported_item_model = value.kind.value


class AuditLog(Base):
    """Audit log for admin moderation actions."""

    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Cleared when the acting admin is deleted; the entry itself survives.
    actor_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    target_type = Column(String(20), nullable=True)
    target_id = Column(Uuid, nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    actor = relationship("User")

    __table_args__ = (Index("ix_audit_logs_actor_created", actor_id, created_at.desc()),)


TARGET_MODELS: dict[TargetKind, type[Base]] = {
    TargetKind.BLOG: Blog,
    TargetKind.COMMENT: Comment,
    TargetKind.USER: User,
}
