"""
User administration - Create, read, list, update and delete users.

Used by the bearer-protected /users routes. Self-service updates of
username, email or password also go through update_user().
"""

import logging
import math
from dataclasses import dataclass

from .config import AuthConfig
from .exceptions import Conflict, NotFound
from .passwords import hash_password
from .ports import User, UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserPage:
    """One page of users plus pagination metadata."""

    users: list[User]
    current_page: int
    page_items: int
    total_pages: int
    total_items: int


@dataclass
class UserAdministration:
    """Domain service for user CRUD."""

    users: UserRepository
    config: AuthConfig

    def create_user(self, username: str, email: str, password: str) -> User:
        """
        Raises:
            Conflict: If the email and/or username are already registered
        """
        email = email.strip().lower()
        conflicts = []
        if self.users.exists_by_email(email):
            conflicts.append("Email already registered")
        if self.users.exists_by_username(username):
            conflicts.append("Username already registered")
        if conflicts:
            raise Conflict(*conflicts)

        user = self.users.create(
            username, email, hash_password(password, rounds=self.config.bcrypt_cost)
        )
        logger.info("User %s created", user.id)
        return user

    def get_user(self, user_id: str) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def list_users(self, page: int = 1, items_per_page: int = 10) -> UserPage:
        page = max(page, 1)
        items_per_page = max(items_per_page, 1)
        users = self.users.list_page((page - 1) * items_per_page, items_per_page)
        total = self.users.count()
        return UserPage(
            users=users,
            current_page=page,
            page_items=len(users),
            total_pages=math.ceil(total / items_per_page),
            total_items=total,
        )

    def update_user(
        self,
        user_id: str,
        username: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> User:
        """
        Partially update a user. Empty values are left unchanged.

        Raises:
            Conflict: If the new email or username belongs to another user
            NotFound: If no user has that id
        """
        current = self.users.find_by_id(user_id)
        if current is None:
            raise NotFound("User not found")

        fields: dict[str, object] = {}
        if email:
            email = email.strip().lower()
            other = self.users.find_by_email(email)
            if other is not None and other.id != current.id:
                raise Conflict("Email already registered")
            fields["email"] = email
        if username:
            other = self.users.find_by_email_or_username(username)
            if other is not None and other.id != current.id and other.username == username:
                raise Conflict("Username already registered")
            fields["username"] = username
        if password:
            fields["password_hash"] = hash_password(password, rounds=self.config.bcrypt_cost)

        user = self.users.update_by_id(current.id, **fields)
        if user is None:
            raise NotFound("User not found")
        logger.info("User %s updated (%s)", user.id, ", ".join(sorted(fields)) or "no changes")
        return user

    def delete_user(self, user_id: str) -> None:
        if not self.users.delete_by_id(user_id):
            raise NotFound("User not found")
        logger.info("User %s deleted", user_id)
