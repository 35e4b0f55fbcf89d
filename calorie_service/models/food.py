from uuid import uuid4

from sqlalchemy import Column, String, Text, Float, Date, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from utils.db_manager import Base, PreciseDateTime
from utils.time_utils import utcnow, to_iso


class UserFood(Base):
    """
    A food in the user's personal database, with nutrition per 100g
    """
    __tablename__ = "user_foods"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_foods_user_name"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    calories_per_100g = Column(Float, nullable=False)
    protein_per_100g = Column(Float, nullable=False)
    carbs_per_100g = Column(Float, nullable=False)
    fat_per_100g = Column(Float, nullable=False)
    fiber_per_100g = Column(Float, nullable=False)
    salt_per_100g = Column(Float, nullable=False)
    default_grams = Column(Float, nullable=True)
    comments = Column(Text, nullable=True)
    created_at = Column(PreciseDateTime, default=utcnow, nullable=False)
    updated_at = Column(PreciseDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    entries = relationship("FoodEntry", back_populates="user_food", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "caloriesPer100g": self.calories_per_100g,
            "proteinPer100g": self.protein_per_100g,
            "carbsPer100g": self.carbs_per_100g,
            "fatPer100g": self.fat_per_100g,
            "fiberPer100g": self.fiber_per_100g,
            "saltPer100g": self.salt_per_100g,
            "defaultGrams": self.default_grams,
            "comments": self.comments,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


class FoodEntry(Base):
    """
    A logged amount of a UserFood on a given day
    """
    __tablename__ = "food_entries"
    __table_args__ = (
        Index("ix_food_entries_user_date", "user_id", "date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_food_id = Column(String(36), ForeignKey("user_foods.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    grams = Column(Float, nullable=False)
    timestamp = Column(PreciseDateTime, default=utcnow, nullable=False)

    user_food = relationship("UserFood", back_populates="entries")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userFoodId": self.user_food_id,
            "date": self.date.isoformat(),
            "grams": self.grams,
            "timestamp": to_iso(self.timestamp),
            "userFood": self.user_food.to_dict() if self.user_food else None,
        }
