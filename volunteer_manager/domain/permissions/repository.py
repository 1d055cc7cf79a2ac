"""Permission repository - Database operations for account access"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import User


class PermissionRepository:
    """Repository for account access database operations"""

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def update_access(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user
