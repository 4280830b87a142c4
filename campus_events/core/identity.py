"""
Caller identity passed explicitly into every core operation.
"""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Role claim supplied by the identity provider."""
    COMMITTEE = "committee"
    GENERAL_SECRETARY = "general_secretary"
    DEAN = "dean"
    STUDENT = "student"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller."""
    user_id: str
    role: Role

    @property
    def is_approver(self) -> bool:
        return self.role in (Role.GENERAL_SECRETARY, Role.DEAN)
