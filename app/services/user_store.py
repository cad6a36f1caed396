from typing import Optional

from sqlmodel import Session, select

from app.constants.order_status import UserRole
from app.exceptions import Forbidden, Unauthorized
from app.models.user import User


class UserStore:
    def __init__(self, session: Session):
        self.session = session

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(
            select(User).where(User.email == email)
        ).first()

    def resolve_role(self, email: str) -> UserRole:
        user = self.get_by_email(email)
        if user is None:
            raise Unauthorized("User not found")
        try:
            return UserRole(user.role)
        except ValueError:
            raise Forbidden(f"Unknown role: {user.role}")

    def require_role(self, email: str, role: UserRole) -> UserRole:
        resolved = self.resolve_role(email)
        if resolved != role:
            raise Forbidden(f"{role.value.capitalize()} access required")
        return resolved
