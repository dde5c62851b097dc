from sqlalchemy.orm import Session
from agencydesk.models.admin import Admin
from agencydesk.models.user import User


class UserRepository:
    """Repository for User and Admin account lookups"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> User | None:
        """Get user by internal ID"""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> User | None:
        """Get user by email (case-insensitive)"""
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_admin_by_id(self, admin_id: int) -> Admin | None:
        """Get platform admin by ID"""
        return self.db.query(Admin).filter(Admin.id == admin_id).first()

    def create(self, user: User) -> User:
        """
        Create new user.

        Raises:
            IntegrityError: If the email is already registered
        """
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
