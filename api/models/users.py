"""User model for login accounts."""

from sqlalchemy import Column, Integer, String, Boolean

from api.config.database import Base
from .base import TimestampMixin


class User(TimestampMixin, Base):
    """
    Login accounts.

    Accounts are created by the account service once an application is
    approved; this service reads them for identity uniqueness checks and to
    resolve reviewers.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    national_id = Column(String(11), nullable=True, unique=True)
    student_number = Column(String(50), nullable=True, unique=True)

    # user, admin
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
