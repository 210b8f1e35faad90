"""SQLAlchemy ORM models for contrack."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Repository(Base):
    __tablename__ = "repositories"

    url: Mapped[str] = mapped_column("repository_url", Text, primary_key=True)
    organization: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Contribution(Base):
    __tablename__ = "contributions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Referential integrity to repositories is by convention only
    repository_url: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    overview: Mapped[str] = mapped_column(Text, default="")
    description: Mapped[str] = mapped_column(Text, default="")
    key_commits: Mapped[list[str]] = mapped_column(JSON, default=list)
    related_commits: Mapped[list[str]] = mapped_column(JSON, default=list)
    technical_details: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    resume_bullets: Mapped[list[str]] = mapped_column(JSON, default=list)
    category: Mapped[str] = mapped_column(Text, default="Feature")
    priority: Mapped[int] = mapped_column(
        Integer,
        CheckConstraint("priority BETWEEN 0 AND 255"),
        default=5,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("repository_url", "name", name="uq_contributions_repo_name"),
        Index("idx_contributions_repo", "repository_url"),
    )

    def commit_refs(self) -> list[str]:
        """Key commits followed by related commits."""
        return list(self.key_commits or []) + list(self.related_commits or [])


class Commit(Base):
    __tablename__ = "commits"

    hash: Mapped[str] = mapped_column("commit_hash", Text, primary_key=True)
    repository_url: Mapped[str] = mapped_column(Text, nullable=False)
    contribution_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("contributions.id", ondelete="SET NULL")
    )
    author: Mapped[str] = mapped_column(Text, nullable=False)
    author_email: Mapped[Optional[str]] = mapped_column(Text)
    # ISO-8601, always UTC
    date: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, default="")
    files_changed: Mapped[list[str]] = mapped_column(JSON, default=list)
    lines_added: Mapped[Optional[int]] = mapped_column(Integer)
    lines_deleted: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_commits_repo", "repository_url"),
        Index("idx_commits_contribution", "contribution_id"),
    )

    @property
    def short_hash(self) -> str:
        return self.hash[:8]

    @property
    def summary(self) -> str:
        """First line of the commit message."""
        return (self.message or "").strip().split("\n", 1)[0]


class AgentRule(Base):
    __tablename__ = "agent_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    instruction: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0)
    category: Mapped[Optional[str]] = mapped_column(Text)
    examples: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Prompt(Base):
    __tablename__ = "prompts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    prompt_text: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[Optional[str]] = mapped_column(Text)
    variables: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Loadout(Base):
    __tablename__ = "loadouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class LoadoutPrompt(Base):
    __tablename__ = "loadout_prompts"

    loadout_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("loadouts.id", ondelete="CASCADE"), primary_key=True
    )
    prompt_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True
    )


class LoadoutRule(Base):
    __tablename__ = "loadout_rules"

    loadout_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("loadouts.id", ondelete="CASCADE"), primary_key=True
    )
    rule_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("agent_rules.id", ondelete="CASCADE"), primary_key=True
    )
