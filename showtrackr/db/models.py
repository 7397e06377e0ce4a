from datetime import date, datetime, timezone

from sqlalchemy import BigInteger, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
Identifier = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    subscriptions: Mapped[list["Subscription"]] = relationship(back_populates="user", cascade="all, delete-orphan")


class Show(Base):
    __tablename__ = "shows"

    # Assigned by the show database, never generated locally.
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    airs_day_of_week: Mapped[str | None] = mapped_column(String(32), nullable=True)
    airs_time: Mapped[str | None] = mapped_column(String(32), nullable=True)
    first_aired: Mapped[date | None] = mapped_column(Date, nullable=True)
    network: Mapped[str | None] = mapped_column(String(255), nullable=True)
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    rating_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str | None] = mapped_column(String(64), nullable=True)
    poster: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    genres: Mapped[list["ShowGenre"]] = relationship(
        back_populates="show", cascade="all, delete-orphan", order_by="ShowGenre.position"
    )
    episodes: Mapped[list["Episode"]] = relationship(
        back_populates="show", cascade="all, delete-orphan", order_by="Episode.position"
    )
    subscriptions: Mapped[list["Subscription"]] = relationship(back_populates="show", cascade="all, delete-orphan")

    @property
    def genre_names(self) -> list[str]:
        return [genre.name for genre in self.genres]

    @property
    def subscriber_ids(self) -> list[int]:
        return [subscription.user_id for subscription in self.subscriptions]


class ShowGenre(Base):
    __tablename__ = "show_genres"
    __table_args__ = (UniqueConstraint("show_id", "position", name="uq_show_genre_position"),)

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    show_id: Mapped[int] = mapped_column(ForeignKey("shows.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    show: Mapped[Show] = relationship(back_populates="genres")


class Episode(Base):
    __tablename__ = "episodes"
    __table_args__ = (UniqueConstraint("show_id", "position", name="uq_episode_position"),)

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    show_id: Mapped[int] = mapped_column(ForeignKey("shows.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    season: Mapped[int | None] = mapped_column(Integer, nullable=True)
    episode_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    episode_name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    first_aired: Mapped[date | None] = mapped_column(Date, nullable=True)
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)

    show: Mapped[Show] = relationship(back_populates="episodes")


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (UniqueConstraint("show_id", "user_id", name="uq_subscription_show_user"),)

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    show_id: Mapped[int] = mapped_column(ForeignKey("shows.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    show: Mapped[Show] = relationship(back_populates="subscriptions")
    user: Mapped[User] = relationship(back_populates="subscriptions")
