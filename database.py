#!/usr/bin/env python3
"""
Database models and configuration for the game catalog.
Holds the video games, their tags, the users who review them and the reviews.
"""

import os
import re
import logging
import unicodedata
from datetime import datetime

from sqlalchemy import (create_engine, Column, Integer, String, Date, DateTime,
                        Text, ForeignKey, Table)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from sqlalchemy.pool import StaticPool

from app.models import RatingDistribution

logger = logging.getLogger('catalog.database')

# Database URL - any SQLAlchemy URL, SQLite by default
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///game_catalog.db')

Base = declarative_base()
engine = None
SessionLocal = None


def configure_engine(url: str = None):
    """(Re)bind the module-level engine and session factory to *url*.

    In-memory SQLite URLs share a single connection so every session sees
    the same database.
    """
    global engine, SessionLocal
    url = url or DATABASE_URL
    kwargs = {}
    if url in ('sqlite://', 'sqlite:///:memory:'):
        kwargs = {'poolclass': StaticPool,
                  'connect_args': {'check_same_thread': False}}
    engine = create_engine(url, echo=False, **kwargs)
    SessionLocal = sessionmaker(autoflush=False, bind=engine)
    logger.debug("Database engine bound to %s", engine.url.render_as_string(hide_password=True))
    return engine


video_game_tags = Table(
    'video_game_tags',
    Base.metadata,
    Column('video_game_id', Integer, ForeignKey('video_games.id'), primary_key=True),
    Column('tag_id', Integer, ForeignKey('tags.id'), primary_key=True),
)


class Tag(Base):
    """Shared label attached to any number of games."""
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)


class User(Base):
    """Account that writes reviews."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    reviews = relationship("Review", back_populates="user")


class Game(Base):
    """Catalog entry for a video game.

    ``average_rating`` and the ``rating_*`` counters are cached aggregates of
    ``reviews``; they are refreshed by the rating aggregator, not by the ORM.
    """
    __tablename__ = "video_games"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True)
    description = Column(Text, nullable=True)
    release_date = Column(Date, nullable=True)
    rating = Column(Integer, nullable=True)  # editorial seed, not the review average
    average_rating = Column(Integer, nullable=True)
    rating_one = Column(Integer, nullable=False, default=0)
    rating_two = Column(Integer, nullable=False, default=0)
    rating_three = Column(Integer, nullable=False, default=0)
    rating_four = Column(Integer, nullable=False, default=0)
    rating_five = Column(Integer, nullable=False, default=0)

    # Relationships
    tags = relationship("Tag", secondary=video_game_tags, order_by="Tag.id")
    reviews = relationship("Review", back_populates="game",
                           cascade="all, delete-orphan", order_by="Review.id")

    def __init__(self, **kwargs):
        for column in ('rating_one', 'rating_two', 'rating_three',
                       'rating_four', 'rating_five'):
            kwargs.setdefault(column, 0)
        if 'title' in kwargs and 'slug' not in kwargs:
            kwargs['slug'] = slugify(kwargs['title'])
        super().__init__(**kwargs)

    @property
    def rating_distribution(self) -> RatingDistribution:
        return RatingDistribution(
            one=self.rating_one or 0,
            two=self.rating_two or 0,
            three=self.rating_three or 0,
            four=self.rating_four or 0,
            five=self.rating_five or 0,
        )

    @rating_distribution.setter
    def rating_distribution(self, distribution: RatingDistribution) -> None:
        self.rating_one = distribution.one
        self.rating_two = distribution.two
        self.rating_three = distribution.three
        self.rating_four = distribution.four
        self.rating_five = distribution.five

    def __repr__(self) -> str:
        return f"<Game id={self.id} title={self.title!r}>"


class Review(Base):
    """A user's star rating (1-5) and comment for a game."""
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    video_game_id = Column(Integer, ForeignKey("video_games.id"), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    game = relationship("Game", back_populates="reviews")
    user = relationship("User", back_populates="reviews")


def slugify(title: str) -> str:
    """Turn a game title into a URL slug ("Jeu vidéo 49" -> "jeu-video-49")."""
    ascii_title = unicodedata.normalize('NFKD', title).encode('ascii', 'ignore').decode('ascii')
    return re.sub(r'[^a-z0-9]+', '-', ascii_title.lower()).strip('-')


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database tables."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables initialized successfully")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database: {e}")
        return False


def drop_db():
    """Drop every catalog table (used by tests and resets)."""
    Base.metadata.drop_all(bind=engine)


def get_user_by_username(db, username: str):
    """Get user from database."""
    if not db or not username:
        return None
    try:
        return db.query(User).filter(User.username == username).first()
    except SQLAlchemyError as e:
        logger.error(f"Error getting user: {e}")
        return None


configure_engine()
