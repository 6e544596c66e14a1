"""
User model for authentication
"""

from typing import List, Optional
from pydantic import BaseModel, EmailStr


class User(BaseModel):
    """User model from JWT token payload"""

    id: str
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    roles: List[str] = []

    def is_admin(self, admin_role: str = "admin") -> bool:
        """Check if user has admin role"""
        return self.has_role(admin_role)

    def has_role(self, role: str) -> bool:
        """Check if user has a specific role"""
        return role.lower() in [r.lower() for r in self.roles]

    @property
    def display_name(self) -> str:
        """Name shown on reviews: first name, else email, else id"""
        return self.first_name or self.email or self.id
