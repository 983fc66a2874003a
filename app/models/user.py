"""
User model for authentication
"""

from typing import List
from pydantic import BaseModel


class User(BaseModel):
    """Caller identity taken from the JWT payload"""

    username: str
    roles: List[str] = []

    def is_admin(self) -> bool:
        """Check if user has admin role"""
        return any(role.lower() == "admin" for role in self.roles)
