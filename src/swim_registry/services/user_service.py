"""User Service - record store for registrants"""

import logging
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from swim_registry.models.user import MUTABLE_FIELDS, User
from swim_registry.services.errors import ConflictError, NotFoundError, StoreError
from swim_registry.services.query_builder import PLACEHOLDER, PredicateBuilder, render

logger = logging.getLogger(__name__)

USER_COLUMNS = (
    "id",
    "first_name",
    "last_name",
    "email",
    "date_naissance",
    "niveau_natation",
    "created_at",
)


class UserService:
    """Service for handling registrant records"""

    def __init__(self, db_session: Session):
        self.db = db_session

    @property
    def dialect_name(self) -> str:
        """Name of the SQL dialect behind the session (sqlite, postgresql)"""
        return self.db.get_bind().dialect.name

    def find(
        self, predicate: PredicateBuilder, limit: int, offset: int
    ) -> List[User]:
        """
        Fetch matching users, most recently created first.

        Args:
            predicate: Conditions combined with AND
            limit: Maximum number of rows
            offset: Rows of the filtered, ordered set to skip

        Returns:
            List of User objects (possibly empty)

        Raises:
            StoreError: If the query fails
        """
        sql = (
            f"SELECT {', '.join(USER_COLUMNS)} FROM users {predicate.where_sql()} "
            f"ORDER BY id DESC LIMIT {PLACEHOLDER} OFFSET {PLACEHOLDER}"
        )
        statement = render(sql, [*predicate.params(), limit, offset]).columns(
            *(getattr(User, column) for column in USER_COLUMNS)
        )
        try:
            result = self.db.exec(select(User).from_statement(statement))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing users: {e}")
            raise StoreError(f"Failed to list users: {str(e)}") from e

    def count(self, predicate: PredicateBuilder) -> int:
        """Count users matching the predicate"""
        statement = render(
            f"SELECT COUNT(*) FROM users {predicate.where_sql()}", predicate.params()
        )
        try:
            return int(self.db.exec(statement).scalar_one())
        except SQLAlchemyError as e:
            logger.error(f"Error counting users: {e}")
            raise StoreError(f"Failed to count users: {str(e)}") from e

    def get(self, user_id: int) -> User:
        """
        Get a user by ID

        Raises:
            NotFoundError: If no user has this ID
            StoreError: If the lookup fails
        """
        try:
            user = self.db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user {user_id}: {e}")
            raise StoreError(f"Failed to retrieve user: {str(e)}") from e

        if user is None:
            logger.info(f"User {user_id} not found")
            raise NotFoundError()
        return user

    def insert(self, fields: Dict[str, Any]) -> User:
        """
        Create a new user; the store assigns id and created_at

        Raises:
            ConflictError: If the email is already registered
            StoreError: If the insert fails
        """
        user = User(**{name: fields[name] for name in MUTABLE_FIELDS})
        self._commit(user, "create user")
        logger.info(f"User created successfully: {user.id}")
        return user

    def update(self, user_id: int, fields: Dict[str, Any]) -> User:
        """
        Replace the mutable fields of an existing user

        Raises:
            NotFoundError: If no user has this ID
            ConflictError: If the new email belongs to another user
            StoreError: If the update fails
        """
        user = self.get(user_id)
        for name in MUTABLE_FIELDS:
            if name in fields:
                setattr(user, name, fields[name])

        self._commit(user, f"update user {user_id}")
        logger.info(f"User updated successfully: {user.id}")
        return user

    def delete(self, user_id: int) -> None:
        """
        Permanently delete a user

        Raises:
            NotFoundError: If no user has this ID
            StoreError: If the delete fails
        """
        user = self.get(user_id)
        try:
            self.db.delete(user)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting user {user_id}: {e}")
            raise StoreError(f"Failed to delete user: {str(e)}") from e

        logger.info(f"User deleted successfully: {user_id}")

    def _commit(self, user: User, action: str) -> None:
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Constraint violation on {action}: {e}")
            raise ConflictError(f"Failed to {action}: {str(e.orig)}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error on {action}: {e}")
            raise StoreError(f"Failed to {action}: {str(e)}") from e
