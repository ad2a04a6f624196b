"""User administration: validation, filtered pagination, and status transitions over a UserRepository."""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.context import RequestContext
from app.core.errors import (
    AuthenticationError,
    CancelledError,
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from app.core.security import (
    BCRYPT_ROUNDS,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    verify_password,
)
from app.models.user import USER_NAME_LIVE_INDEX, User
from app.repositories.user_repository import UserRepository
from app.schemas.common import PaginationParam
from app.schemas.user import UserCreate, UserQueryParam, UserStatus, UserUpdate

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGE_SIZE = 100


def _now() -> datetime:
    return datetime.now(UTC)


def _validate_password(password: str) -> None:
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise InvalidArgumentError(
            f"password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters."
        )


def _is_user_name_clash(e: IntegrityError) -> bool:
    # PostgreSQL names the index; SQLite names the column.
    message = str(e.orig)
    return USER_NAME_LIVE_INDEX in message or "users.user_name" in message


def _parse_status(status: int) -> UserStatus:
    try:
        return UserStatus(status)
    except ValueError as e:
        raise InvalidArgumentError(
            f"status must be {int(UserStatus.ENABLED)} (enabled) or {int(UserStatus.DISABLED)} (disabled)."
        ) from e


class UserService:
    """
    Business rules for the user resource.

    Holds no mutable state of its own; every operation takes an explicit RequestContext
    and works through the injected repository. Each write is committed individually,
    after a final cancellation check, so a cancelled request never completes a write.
    """

    def __init__(
        self,
        repository: UserRepository,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ) -> None:
        self._repo = repository
        self._max_page_size = max_page_size
        self._bcrypt_rounds = bcrypt_rounds

    @contextmanager
    def _reading(self) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.exception("User read failed")
            raise InternalError("Database error while reading users.", cause=e) from e

    @contextmanager
    def _writing(self, ctx: RequestContext, action: str, record_id: str) -> Iterator[None]:
        log_extra = {"action": action, "record_id": record_id, "caller": ctx.caller_id}
        try:
            yield
            ctx.raise_if_cancelled()
            self._repo.commit()
        except CancelledError:
            self._repo.rollback()
            logger.warning("User write aborted: request cancelled", extra=log_extra)
            raise
        except NotFoundError:
            self._repo.rollback()
            raise
        except IntegrityError as e:
            self._repo.rollback()
            if not _is_user_name_clash(e):
                logger.exception("User write violated a constraint", extra=log_extra)
                raise InternalError("Database constraint violated while writing user.", cause=e) from e
            logger.warning("User write rejected by unique constraint", extra=log_extra)
            raise ConflictError("user_name is already in use.", cause=e) from e
        except SQLAlchemyError as e:
            self._repo.rollback()
            logger.exception("User write failed", extra=log_extra)
            raise InternalError("Database error while writing user.", cause=e) from e
        logger.info("User %s", action, extra=log_extra)

    def _require(self, record_id: str) -> User:
        with self._reading():
            user = self._repo.get(record_id)
        if user is None:
            raise NotFoundError(record_id)
        return user

    def _ensure_user_name_free(self, user_name: str, record_id: str | None = None) -> None:
        # Friendly pre-check only; concurrent writers are caught by the unique index.
        with self._reading():
            holder = self._repo.get_by_user_name(user_name)
        if holder is not None and holder.record_id != record_id:
            raise InvalidArgumentError(f"user_name {user_name!r} is already in use.")

    def query_page(
        self,
        ctx: RequestContext,
        params: UserQueryParam,
        pagination: PaginationParam,
    ) -> tuple[list[User], int]:
        """
        Return one page of live users matching every set filter, newest first,
        plus the total number of matches before pagination.
        """
        ctx.raise_if_cancelled()
        if pagination.current < 1:
            raise InvalidArgumentError("current must be >= 1.")
        if pagination.page_size < 1 or pagination.page_size > self._max_page_size:
            raise InvalidArgumentError(
                f"pageSize must be between 1 and {self._max_page_size}."
            )
        if params.status:
            _parse_status(params.status)

        with self._reading():
            total = self._repo.count(params)
            items = list(self._repo.query(params, pagination.offset, pagination.limit))
        return items, total

    def get(self, ctx: RequestContext, record_id: str) -> User:
        ctx.raise_if_cancelled()
        return self._require(record_id)

    def create(self, ctx: RequestContext, item: UserCreate) -> User:
        """Create a user; the server assigns record_id and defaults status to enabled."""
        ctx.raise_if_cancelled()
        user_name = item.user_name.strip()
        if not user_name:
            raise InvalidArgumentError("user_name must not be empty.")
        _validate_password(item.password)
        self._ensure_user_name_free(user_name)

        now = _now()
        user = User(
            record_id=str(uuid.uuid4()),
            user_name=user_name,
            real_name=item.real_name.strip(),
            password_hash=hash_password(item.password, rounds=self._bcrypt_rounds),
            role_id=item.role_id or None,
            status=int(item.status or UserStatus.ENABLED),
            creator=ctx.caller_id,
            created_at=now,
            updated_at=now,
        )
        with self._writing(ctx, "created", user.record_id):
            self._repo.insert(user)
        return user

    def update(self, ctx: RequestContext, record_id: str, item: UserUpdate) -> None:
        """Update mutable fields. record_id and status never change here."""
        ctx.raise_if_cancelled()
        self._require(record_id)
        user_name = item.user_name.strip()
        if not user_name:
            raise InvalidArgumentError("user_name must not be empty.")
        self._ensure_user_name_free(user_name, record_id=record_id)

        values = {
            "user_name": user_name,
            "real_name": item.real_name.strip(),
            "role_id": item.role_id or None,
            "updated_at": _now(),
        }
        if item.password:
            _validate_password(item.password)
            values["password_hash"] = hash_password(item.password, rounds=self._bcrypt_rounds)

        with self._writing(ctx, "updated", record_id):
            if not self._repo.update(record_id, values):
                raise NotFoundError(record_id)

    def delete(self, ctx: RequestContext, record_id: str) -> None:
        """Soft-delete a live user. Deleting it again raises NotFoundError."""
        ctx.raise_if_cancelled()
        with self._writing(ctx, "deleted", record_id):
            if not self._repo.soft_delete(record_id, _now()):
                raise NotFoundError(record_id)

    def delete_many(self, ctx: RequestContext, record_ids: list[str]) -> None:
        """
        Delete users in order, stopping at the first failure.

        Deletions that already succeeded stay committed; the error that stopped
        the batch is re-raised as-is (a NotFoundError names the missing id).
        """
        if not record_ids:
            raise InvalidArgumentError("At least one record id is required.")
        for index, record_id in enumerate(record_ids):
            try:
                self.delete(ctx, record_id)
            except Exception:
                logger.warning(
                    "Batch delete stopped",
                    extra={
                        "record_id": record_id,
                        "deleted_count": index,
                        "remaining_count": len(record_ids) - index - 1,
                    },
                )
                raise

    def update_status(self, ctx: RequestContext, record_id: str, status: int) -> None:
        """Enable or disable a user. Setting the status it already has is a no-op."""
        ctx.raise_if_cancelled()
        new_status = _parse_status(status)
        user = self._require(record_id)
        if user.status == new_status:
            return
        with self._writing(ctx, new_status.name.lower(), record_id):
            if not self._repo.update(record_id, {"status": int(new_status), "updated_at": _now()}):
                raise NotFoundError(record_id)

    def authenticate(self, ctx: RequestContext, user_name: str, password: str) -> User:
        """Check credentials for login. Disabled users are rejected even with a valid password."""
        ctx.raise_if_cancelled()
        with self._reading():
            user = self._repo.get_by_user_name(user_name.strip())
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid user name or password.")
        if user.status != UserStatus.ENABLED:
            raise ForbiddenError("User is disabled.")
        return user
