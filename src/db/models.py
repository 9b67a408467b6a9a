"""SQLAlchemy declarative base and ORM models for StacksQuest."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


# ── users ────────────────────────────────────────────────


class UserModel(Base):
    """ORM model for users (identified by Stacks wallet address)."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    stacks_address: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    username: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    email: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    profile: Mapped["UserProfileModel | None"] = relationship(
        "UserProfileModel",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )


class UserProfileModel(Base):
    """ORM model for per-user aggregate counters."""

    __tablename__ = "user_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    display_name: Mapped[str | None] = mapped_column(String, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_quests_completed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    user: Mapped["UserModel"] = relationship("UserModel", back_populates="profile")


# ── catalog ──────────────────────────────────────────────


class BadgeModel(Base):
    """ORM model for NFT badges."""

    __tablename__ = "badges"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[str] = mapped_column(String, nullable=False, default="")
    category: Mapped[str] = mapped_column(String, nullable=False)
    rarity: Mapped[str] = mapped_column(String, nullable=False)
    requirements: Mapped[list] = mapped_column(JSON, default=list)
    contract_token_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class QuestModel(Base):
    """ORM model for quest definitions."""

    __tablename__ = "quests"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String, nullable=False)
    difficulty: Mapped[str] = mapped_column(String, nullable=False)
    estimated_time: Mapped[int] = mapped_column(Integer, default=0)
    prerequisites: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    steps: Mapped[list["QuestStepModel"]] = relationship(
        "QuestStepModel",
        back_populates="quest",
        cascade="all, delete-orphan",
        order_by="QuestStepModel.step_number",
    )
    rewards: Mapped[list["QuestRewardModel"]] = relationship(
        "QuestRewardModel",
        back_populates="quest",
        cascade="all, delete-orphan",
        order_by="QuestRewardModel.position",
    )


class QuestStepModel(Base):
    """ORM model for quest steps."""

    __tablename__ = "quest_steps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quest_id: Mapped[str] = mapped_column(
        String, ForeignKey("quests.id", ondelete="CASCADE"), nullable=False
    )
    step_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    step_type: Mapped[str] = mapped_column(String, nullable=False, default="TUTORIAL")
    requirements: Mapped[list] = mapped_column(JSON, default=list)
    hints: Mapped[list] = mapped_column(JSON, default=list)

    quest: Mapped["QuestModel"] = relationship("QuestModel", back_populates="steps")

    __table_args__ = (
        UniqueConstraint("quest_id", "step_number", name="uq_step_number"),
    )


class QuestRewardModel(Base):
    """ORM model for quest rewards."""

    __tablename__ = "quest_rewards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quest_id: Mapped[str] = mapped_column(
        String, ForeignKey("quests.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reward_type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    badge_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("badges.id"), nullable=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    quest: Mapped["QuestModel"] = relationship("QuestModel", back_populates="rewards")
    badge: Mapped["BadgeModel | None"] = relationship("BadgeModel")

    __table_args__ = (Index("idx_reward_badge", "badge_id"),)


# ── per-user state ───────────────────────────────────────


class UserProgressModel(Base):
    """ORM model for a user's progress on one quest."""

    __tablename__ = "user_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    quest_id: Mapped[str] = mapped_column(
        String, ForeignKey("quests.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String, nullable=False)
    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    completed_steps: Mapped[list] = mapped_column(JSON, default=list)
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    quest: Mapped["QuestModel"] = relationship("QuestModel")

    __table_args__ = (
        UniqueConstraint("user_id", "quest_id", name="uq_progress_user_quest"),
        Index("idx_progress_user", "user_id"),
        Index("idx_progress_status", "user_id", "status"),
    )


class UserBadgeModel(Base):
    """ORM model for badges earned by a user."""

    __tablename__ = "user_badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    badge_id: Mapped[str] = mapped_column(
        String, ForeignKey("badges.id", ondelete="CASCADE"), nullable=False
    )
    earned_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    transaction_id: Mapped[str | None] = mapped_column(String, nullable=True)

    badge: Mapped["BadgeModel"] = relationship("BadgeModel")

    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),
        Index("idx_user_badge_user", "user_id"),
    )
