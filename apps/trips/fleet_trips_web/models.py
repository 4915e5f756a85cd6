"""Account model used by Flask-Login."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash


@dataclass
class Account(UserMixin):
    """Authenticated identity. ``id`` is the opaque owner identifier on trips."""

    id: str
    email: str
    password_hash: str
    created_at: Optional[datetime] = None

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def hash_password(password: str) -> str:
        return generate_password_hash(password)
