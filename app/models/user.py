"""ORM model for back-office user accounts."""

from sqlalchemy import Column, DateTime, Index, Integer, SmallInteger, String, text

from app.models.base import Base


USER_NAME_LIVE_INDEX = "uq_users_user_name_live"


class User(Base):
    """
    Administrative account.

    record_id is the public identifier; id is an internal surrogate key.
    Rows are soft-deleted: a non-null deleted_at means the record is no longer live,
    and user_name is only unique among live rows.
    status: 1 = enabled, 2 = disabled
    """

    __tablename__ = "users"
    __table_args__ = (
        Index(
            USER_NAME_LIVE_INDEX,
            "user_name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    record_id = Column(String(36), nullable=False, unique=True, index=True)
    user_name = Column(String(64), nullable=False)
    real_name = Column(String(64), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    role_id = Column(String(36), nullable=True, index=True)
    status = Column(SmallInteger, nullable=False, default=1)
    creator = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
