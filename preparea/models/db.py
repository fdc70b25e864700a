"""
SQLAlchemy ORM models for the user store.

The user store holds everything the collector changes: owned card counts,
dice per (character, set group), and team rosters. Reference data lives in
a separate read-only store (see preparea.db.reference_schema).
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CollectionDB(Base):
    """
    Owned copies of one card.

    `have_dice`, `want` and `notes` are kept for backup compatibility; dice
    ownership is tracked per bucket in `collection_dice`.
    """

    __tablename__ = "collection"

    card_pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    have_dice: Mapped[int] = mapped_column(Integer, default=0)
    have_cards: Mapped[int] = mapped_column(Integer, default=0)
    have_foil: Mapped[int] = mapped_column(Integer, default=0)
    want: Mapped[int] = mapped_column(Integer, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<CollectionDB(card_pk={self.card_pk}, "
            f"std={self.have_cards}, foil={self.have_foil})>"
        )


class CollectionDiceDB(Base):
    """Dice owned for one character in one set group."""

    __tablename__ = "collection_dice"

    character_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    set_group: Mapped[str] = mapped_column(String(255), primary_key=True)
    dice_count: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return (
            f"<CollectionDiceDB(character={self.character_name}, "
            f"set_group={self.set_group}, dice={self.dice_count})>"
        )


class TeamDB(Base):
    __tablename__ = "teams"

    team_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    cards: Mapped[list["TeamCardDB"]] = relationship(
        back_populates="team", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<TeamDB(team_id={self.team_id}, name={self.name})>"


class TeamCardDB(Base):
    """A card on a team with its committed dice."""

    __tablename__ = "team_cards"

    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.team_id", ondelete="CASCADE"), primary_key=True
    )
    card_pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    dice_count: Mapped[int] = mapped_column(Integer, default=0)

    team: Mapped["TeamDB"] = relationship(back_populates="cards")

    def __repr__(self) -> str:
        return f"<TeamCardDB(team={self.team_id}, card={self.card_pk}, dice={self.dice_count})>"
