"""SQLModel User model"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

# Fields a create or update request may write; id and created_at are store-owned
MUTABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "date_naissance",
    "niveau_natation",
)


class User(SQLModel, table=True):
    """Registrant record. Age is derived from date_naissance and never stored."""

    __tablename__ = "users"
    # AUTOINCREMENT keeps SQLite from reusing the id of a deleted top row
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str
    email: str = Field(unique=True)
    date_naissance: Optional[str] = Field(default="")  # YYYY-MM-DD
    niveau_natation: Optional[str] = Field(default="")
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
