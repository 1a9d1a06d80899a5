"""User repository - Database operations for accounts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.flush()
        return user
