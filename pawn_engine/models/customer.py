"""Customer model."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Customer:
    """Pawnshop customer."""

    customer_id: int
    first_name: str
    last_name: str
    phone: str
    email: str = ""
    branch_id: int = 0
    is_active: bool = True
    is_blocked: bool = False
    notifications_enabled: bool = True
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
