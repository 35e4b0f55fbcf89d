# repositories/user_repo.py
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.user import User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def ensure_user(self, user_id: str, email: Optional[str] = None, name: Optional[str] = None) -> User:
        """Return the user row, creating a bare one when missing"""
        user = self.get_by_id(user_id)
        if user:
            return user

        user = User(id=user_id, email=email or f"{user_id}@example.com", name=name)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            user = self.get_by_id(user_id)
            if user is None:
                raise
            return user
        self.db.refresh(user)
        return user

    def get_daily_targets(self, user_id: str) -> dict:
        user = self.get_by_id(user_id)
        if user is None:
            return User().daily_targets()
        return user.daily_targets()
