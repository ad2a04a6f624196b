"""Persistence for users: filtered/paginated queries and single-row writes over a SQLAlchemy Session."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select, update
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.user import UserQueryParam


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UserRepository:
    """
    Data access for live (not soft-deleted) users.

    Writes are sent but not committed; the caller decides when to commit or roll back.
    Updates and soft deletes re-check liveness in their WHERE clause, so a row deleted
    by another transaction after it was read is reported as 0 rows changed.
    user_name uniqueness is enforced by the partial unique index, so a colliding insert
    or update raises sqlalchemy.exc.IntegrityError.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _live(self) -> Select:
        return select(User).where(User.deleted_at.is_(None))

    def _filtered(self, params: UserQueryParam) -> Select:
        stmt = self._live()
        if params.user_name:
            stmt = stmt.where(
                User.user_name.ilike(f"%{_escape_like(params.user_name)}%", escape="\\")
            )
        if params.real_name:
            stmt = stmt.where(
                User.real_name.ilike(f"%{_escape_like(params.real_name)}%", escape="\\")
            )
        if params.role_id:
            stmt = stmt.where(User.role_id == params.role_id)
        if params.status:
            stmt = stmt.where(User.status == params.status)
        return stmt

    def query(self, params: UserQueryParam, offset: int, limit: int) -> Sequence[User]:
        """Matching live users, newest first; id breaks ties between equal timestamps."""
        stmt = (
            self._filtered(params)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return self.session.scalars(stmt).all()

    def count(self, params: UserQueryParam) -> int:
        stmt = select(func.count()).select_from(self._filtered(params).subquery())
        return self.session.scalar(stmt) or 0

    def get(self, record_id: str) -> User | None:
        stmt = self._live().where(User.record_id == record_id)
        return self.session.scalars(stmt).first()

    def get_by_user_name(self, user_name: str) -> User | None:
        stmt = self._live().where(User.user_name == user_name)
        return self.session.scalars(stmt).first()

    def insert(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    def update(self, record_id: str, values: dict[str, Any]) -> int:
        """
        Update a live user in one conditional statement; returns the number of rows changed.

        0 means the record is missing or was soft-deleted after the caller read it.
        """
        stmt = (
            update(User)
            .where(User.record_id == record_id, User.deleted_at.is_(None))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount

    def soft_delete(self, record_id: str, when: datetime) -> int:
        """Tombstone a live user; returns 0 when it is already gone."""
        return self.update(record_id, {"deleted_at": when, "updated_at": when})

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
