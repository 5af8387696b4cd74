"""SQLAlchemy declarative base and ORM models for player progression state."""

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


class PlayerModel(Base):
    """ORM model for players (progression ledger + optimistic lock version)."""

    __tablename__ = "players"

    player_id: Mapped[str] = mapped_column(String, primary_key=True)
    current_level: Mapped[int] = mapped_column(Integer, default=1)
    total_experience: Mapped[int] = mapped_column(Integer, default=0)
    level_experience: Mapped[int] = mapped_column(Integer, default=0)
    prestige_count: Mapped[int] = mapped_column(Integer, default=0)
    mastery_points: Mapped[int] = mapped_column(Integer, default=0)

    # 저장 성공마다 +1. UPDATE ... WHERE version = :expected 로 검사
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    skill_branches: Mapped[list["SkillBranchModel"]] = relationship(
        "SkillBranchModel",
        back_populates="player",
        cascade="all, delete-orphan",
    )
    relationship_scores: Mapped[list["RelationshipScoreModel"]] = relationship(
        "RelationshipScoreModel",
        back_populates="player",
        cascade="all, delete-orphan",
    )
    quest_states: Mapped[list["QuestStateModel"]] = relationship(
        "QuestStateModel",
        back_populates="player",
        cascade="all, delete-orphan",
    )
    processed_events: Mapped[list["ProcessedEventModel"]] = relationship(
        "ProcessedEventModel",
        back_populates="player",
        cascade="all, delete-orphan",
    )
    reward_grants: Mapped[list["RewardGrantModel"]] = relationship(
        "RewardGrantModel",
        back_populates="player",
        cascade="all, delete-orphan",
    )
    unlocks: Mapped[list["PlayerUnlockModel"]] = relationship(
        "PlayerUnlockModel",
        back_populates="player",
        cascade="all, delete-orphan",
    )


class SkillBranchModel(Base):
    """ORM model for skill branches."""

    __tablename__ = "skill_branches"

    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), primary_key=True
    )
    branch: Mapped[str] = mapped_column(String, primary_key=True)
    level: Mapped[int] = mapped_column(Integer, default=0)
    max_level: Mapped[int] = mapped_column(Integer, default=50)
    # [{"kind", "magnitude", "description"}, ...] 구매 순서
    bonuses: Mapped[list] = mapped_column(JSON, default=list)

    player: Mapped["PlayerModel"] = relationship(
        "PlayerModel", back_populates="skill_branches"
    )


class RelationshipScoreModel(Base):
    """ORM model for relationship scores."""

    __tablename__ = "relationship_scores"

    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), primary_key=True
    )
    character_id: Mapped[str] = mapped_column(String, primary_key=True)
    score: Mapped[int] = mapped_column(Integer, default=0)

    player: Mapped["PlayerModel"] = relationship(
        "PlayerModel", back_populates="relationship_scores"
    )


class QuestStateModel(Base):
    """ORM model for per-player quest state."""

    __tablename__ = "quest_states"

    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), primary_key=True
    )
    quest_id: Mapped[str] = mapped_column(String, primary_key=True)
    status: Mapped[str] = mapped_column(String, nullable=False)
    progress: Mapped[dict] = mapped_column(JSON, default=dict)
    activated_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_completed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completion_count: Mapped[int] = mapped_column(Integer, default=0)

    player: Mapped["PlayerModel"] = relationship(
        "PlayerModel", back_populates="quest_states"
    )


class ProcessedEventModel(Base):
    """ORM model for chain event ids already applied to a player."""

    __tablename__ = "processed_events"

    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), primary_key=True
    )
    event_id: Mapped[str] = mapped_column(String, primary_key=True)

    player: Mapped["PlayerModel"] = relationship(
        "PlayerModel", back_populates="processed_events"
    )


class RewardGrantModel(Base):
    """ORM model for reward grants (one per quest completion)."""

    __tablename__ = "reward_grants"
    __table_args__ = (
        UniqueConstraint("player_id", "quest_id", "completion_seq"),
    )

    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), primary_key=True
    )
    grant_key: Mapped[str] = mapped_column(String, primary_key=True)
    quest_id: Mapped[str] = mapped_column(String, nullable=False)
    completion_seq: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    # {"<reward index>": {"words": ["<decimal>"...], "rarity": "..."}}
    # 256비트 word는 문자열로 저장
    rolls: Mapped[dict] = mapped_column(JSON, default=dict)
    granted: Mapped[list] = mapped_column(JSON, default=list)
    dispensed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    player: Mapped["PlayerModel"] = relationship(
        "PlayerModel", back_populates="reward_grants"
    )


class PlayerUnlockModel(Base):
    """ORM model for unlocked characters/stories/features and achievements."""

    __tablename__ = "player_unlocks"

    player_id: Mapped[str] = mapped_column(
        String, ForeignKey("players.player_id", ondelete="CASCADE"), primary_key=True
    )
    unlock_type: Mapped[str] = mapped_column(String, primary_key=True)
    target_id: Mapped[str] = mapped_column(String, primary_key=True)

    player: Mapped["PlayerModel"] = relationship("PlayerModel", back_populates="unlocks")
