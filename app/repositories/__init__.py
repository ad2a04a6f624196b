"""Persistence collaborators used by the services."""

from app.repositories.user_repository import UserRepository

__all__ = ["UserRepository"]
