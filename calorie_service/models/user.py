# models/user.py
from sqlalchemy import Column, String, Float

from core.constants import DAILY_TARGETS
from utils.db_manager import Base, PreciseDateTime
from utils.time_utils import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=True)
    target_calories = Column(Float, nullable=True)
    target_protein = Column(Float, nullable=True)
    target_carbs = Column(Float, nullable=True)
    target_fat = Column(Float, nullable=True)
    target_fiber = Column(Float, nullable=True)
    target_salt = Column(Float, nullable=True)
    created_at = Column(PreciseDateTime, default=utcnow)
    updated_at = Column(PreciseDateTime, default=utcnow, onupdate=utcnow)

    def daily_targets(self) -> dict:
        """User targets, falling back to the app defaults per nutrient"""
        targets = {}
        for key, default in DAILY_TARGETS.items():
            value = getattr(self, f"target_{key}")
            targets[key] = value if value is not None else default
        return targets
