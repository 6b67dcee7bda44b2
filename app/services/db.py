"""
Database Service - SQLite with SQLAlchemy
"""
from typing import List, Dict, Any, Optional
from datetime import datetime, date
import logging
import uuid

from sqlalchemy import (
    create_engine, Column, String, Integer, DateTime, Date, Boolean, JSON, Float, Text,
    UniqueConstraint, func,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.config import settings

logger = logging.getLogger("db")

# Create base class for models
Base = declarative_base()


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _parse_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


# ============ Database Models ============

class UserModel(Base):
    """User table model"""
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    nickname = Column(String, nullable=False, default="")

    # Nested documents
    insights_preferences = Column(JSON, nullable=True)
    ai_usage = Column(JSON, nullable=True)
    pattern_cache = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "nickname": self.nickname,
            "insights_preferences": self.insights_preferences or {},
            "ai_usage": self.ai_usage or {},
            "pattern_cache": self.pattern_cache or {},
            "created_at": _iso(self.created_at),
        }


class EntryModel(Base):
    """Journal entry table model"""
    __tablename__ = "entries"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False, default="")
    text = Column(Text, nullable=False, default="")
    emotion = Column(String, nullable=True)
    intensity = Column(Integer, nullable=True)
    occurred_on = Column(Date, nullable=True)
    has_images = Column(Boolean, default=False)
    complexity = Column(Float, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "text": self.text,
            "emotion": self.emotion,
            "intensity": self.intensity,
            "occurred_on": self.occurred_on.isoformat() if self.occurred_on else None,
            "has_images": bool(self.has_images),
            "complexity": self.complexity or 0.0,
            "created_at": _iso(self.created_at),
        }


class InsightModel(Base):
    """Insight table model"""
    __tablename__ = "insights"
    __table_args__ = (
        UniqueConstraint("user_id", "trigger_entry_count", name="uq_insight_user_entry_count"),
    )

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    trigger_entry_count = Column(Integer, nullable=False)
    trigger_entry_id = Column(String, nullable=True)

    type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    title = Column(String(100), nullable=False)
    message = Column(String(500), nullable=False)
    icon = Column(String, nullable=False)
    color = Column(String, nullable=False)
    priority = Column(Integer, default=3)

    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime, nullable=True)
    is_favorited = Column(Boolean, default=False)
    favorited_at = Column(DateTime, nullable=True)
    is_visible = Column(Boolean, default=True)

    pattern_data = Column(JSON, nullable=True)
    generation_metadata = Column(JSON, nullable=False)
    is_ai_generated = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "trigger_entry_count": self.trigger_entry_count,
            "trigger_entry_id": self.trigger_entry_id,
            "type": self.type,
            "category": self.category,
            "title": self.title,
            "message": self.message,
            "icon": self.icon,
            "color": self.color,
            "priority": self.priority,
            "is_read": bool(self.is_read),
            "read_at": _iso(self.read_at),
            "is_favorited": bool(self.is_favorited),
            "favorited_at": _iso(self.favorited_at),
            "is_visible": bool(self.is_visible),
            "pattern_data": self.pattern_data or {},
            "generation_metadata": self.generation_metadata,
            "is_ai_generated": bool(self.is_ai_generated),
            "created_at": _iso(self.created_at),
        }


class DatabaseService:
    """Service for database operations using SQLAlchemy"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url
        self.engine = None
        self.SessionLocal = None
        self._initialized = False

    def initialize(self):
        """Initialize database connection and create tables"""
        if not self._initialized:
            url = self.database_url or settings.database_url
            engine_kwargs: Dict[str, Any] = {}
            if url.startswith("sqlite"):
                engine_kwargs["connect_args"] = {"check_same_thread": False}  # SQLite specific
                if ":memory:" in url or url == "sqlite://":
                    engine_kwargs["poolclass"] = StaticPool

            self.engine = create_engine(url, **engine_kwargs)

            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine
            )

            Base.metadata.create_all(bind=self.engine)

            self._initialized = True
            logger.info(f"Database initialized: {url}")

    def get_session(self) -> Session:
        """Get database session"""
        self._ensure_initialized()
        return self.SessionLocal()

    def _ensure_initialized(self):
        """Ensure database service is initialized"""
        if not self._initialized:
            self.initialize()

    # ============ User Operations ============

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get user by ID"""
        with self.get_session() as session:
            user = session.query(UserModel).filter(UserModel.id == user_id).first()
            return user.to_dict() if user else None

    async def create_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new user"""
        with self.get_session() as session:
            data = dict(user_data)
            data.setdefault("id", str(uuid.uuid4()))
            data["created_at"] = _parse_datetime(data.get("created_at")) or datetime.utcnow()
            user = UserModel(**data)
            session.add(user)
            session.commit()
            session.refresh(user)
            return user.to_dict()

    async def update_user(self, user_id: str, update_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update user data"""
        with self.get_session() as session:
            user = session.query(UserModel).filter(UserModel.id == user_id).first()

            if not user:
                return None

            for key, value in update_data.items():
                if hasattr(user, key) and value is not None:
                    setattr(user, key, value)

            session.commit()
            session.refresh(user)
            return user.to_dict()

    # ============ Entry Operations ============

    async def create_entry(self, entry_data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a journal entry"""
        with self.get_session() as session:
            data = dict(entry_data)
            data.setdefault("id", str(uuid.uuid4()))
            data["created_at"] = _parse_datetime(data.get("created_at")) or datetime.utcnow()
            data["occurred_on"] = _parse_date(data.get("occurred_on"))
            entry = EntryModel(**data)
            session.add(entry)
            session.commit()
            session.refresh(entry)
            return entry.to_dict()

    async def get_entries_for_user(self, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Entries for a user, newest first"""
        with self.get_session() as session:
            query = session.query(EntryModel).filter(
                EntryModel.user_id == user_id
            ).order_by(EntryModel.created_at.desc())
            if limit:
                query = query.limit(limit)
            return [entry.to_dict() for entry in query.all()]

    async def get_entry(self, entry_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """Get an entry owned by the user"""
        with self.get_session() as session:
            entry = session.query(EntryModel).filter(
                EntryModel.id == entry_id,
                EntryModel.user_id == user_id
            ).first()
            return entry.to_dict() if entry else None

    async def count_entries(self, user_id: str) -> int:
        with self.get_session() as session:
            return session.query(func.count(EntryModel.id)).filter(
                EntryModel.user_id == user_id
            ).scalar() or 0

    # ============ Insight Operations ============

    async def get_insight_by_trigger(self, user_id: str, trigger_entry_count: int) -> Optional[Dict[str, Any]]:
        """Insight already generated for this (user, entry count)"""
        with self.get_session() as session:
            insight = session.query(InsightModel).filter(
                InsightModel.user_id == user_id,
                InsightModel.trigger_entry_count == trigger_entry_count
            ).first()
            return insight.to_dict() if insight else None

    async def get_insight(self, insight_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Get an insight, optionally restricted to its owner"""
        with self.get_session() as session:
            query = session.query(InsightModel).filter(InsightModel.id == insight_id)
            if user_id is not None:
                query = query.filter(InsightModel.user_id == user_id)
            insight = query.first()
            return insight.to_dict() if insight else None

    async def create_insight(self, insight_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert an insight

        A concurrent insert for the same (user, entry count) loses the unique
        constraint race; the stored record is returned instead.
        """
        with self.get_session() as session:
            data = dict(insight_data)
            data.setdefault("id", str(uuid.uuid4()))
            for key in ("created_at", "read_at", "favorited_at"):
                data[key] = _parse_datetime(data.get(key))
            if data["created_at"] is None:
                data["created_at"] = datetime.utcnow()

            insight = InsightModel(**data)
            session.add(insight)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                existing = session.query(InsightModel).filter(
                    InsightModel.user_id == data["user_id"],
                    InsightModel.trigger_entry_count == data["trigger_entry_count"]
                ).first()
                if existing is None:
                    raise
                logger.info(
                    f"Insight for user {data['user_id']} entry #{data['trigger_entry_count']} already exists"
                )
                return existing.to_dict()

            session.refresh(insight)
            return insight.to_dict()

    async def update_insight(
        self,
        insight_id: str,
        update_data: Dict[str, Any],
        user_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Update insight fields"""
        with self.get_session() as session:
            query = session.query(InsightModel).filter(InsightModel.id == insight_id)
            if user_id is not None:
                query = query.filter(InsightModel.user_id == user_id)
            insight = query.first()

            if not insight:
                return None

            for key, value in update_data.items():
                if not hasattr(insight, key):
                    continue
                if key in ("read_at", "favorited_at", "created_at"):
                    value = _parse_datetime(value)
                setattr(insight, key, value)

            session.commit()
            session.refresh(insight)
            return insight.to_dict()

    async def get_user_insights(
        self,
        user_id: str,
        limit: int = 10,
        unread_only: bool = False,
        insight_type: Optional[str] = None,
        category: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Visible insights, newest first"""
        with self.get_session() as session:
            query = session.query(InsightModel).filter(
                InsightModel.user_id == user_id,
                InsightModel.is_visible.is_(True)
            )
            if unread_only:
                query = query.filter(InsightModel.is_read.is_(False))
            if insight_type:
                query = query.filter(InsightModel.type == insight_type)
            if category:
                query = query.filter(InsightModel.category == category)

            query = query.order_by(InsightModel.created_at.desc()).limit(limit)
            return [insight.to_dict() for insight in query.all()]

    async def get_insight_counts(self, user_id: str) -> Dict[str, Any]:
        """Totals of visible insights: all, unread, favorited, per category"""
        with self.get_session() as session:
            base = session.query(InsightModel).filter(
                InsightModel.user_id == user_id,
                InsightModel.is_visible.is_(True)
            )
            total = base.count()
            unread = base.filter(InsightModel.is_read.is_(False)).count()
            favorites = base.filter(InsightModel.is_favorited.is_(True)).count()

            rows = session.query(InsightModel.category, func.count(InsightModel.id)).filter(
                InsightModel.user_id == user_id,
                InsightModel.is_visible.is_(True)
            ).group_by(InsightModel.category).all()

            return {
                "total": total,
                "unread": unread,
                "favorites": favorites,
                "by_category": {category: count for category, count in rows},
            }


# Global database service instance
db_service = DatabaseService()
