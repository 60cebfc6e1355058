"""Read-only lookups of users and categories referenced by events and requests."""
from sqlalchemy.orm import Session

from event_explorer.errors import NotFoundError
from event_explorer.models.category import Category
from event_explorer.models.user import User


class ReferenceStore:
    """Validates user/category references; raises NotFoundError when absent."""

    def __init__(self, db: Session) -> None:
        self.session = db

    def get_user(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User with id={user_id} was not found")
        return user

    def get_category(self, category_id: int) -> Category:
        category = self.session.get(Category, category_id)
        if category is None:
            raise NotFoundError(f"Category with id={category_id} was not found")
        return category
