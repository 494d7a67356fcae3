"""
User profile model.
Immutable snapshot of the logged-in user as returned by the REST API,
doubling as the Flask-Login user object.
"""

from enum import Enum
from typing import Any, Optional


class Role(str, Enum):
    """Closed set of portal roles."""

    CUSTOMER = 'customer'
    STAFF = 'staff'
    ADMIN = 'admin'

    @classmethod
    def parse(cls, value) -> 'Role':
        """
        Parse a role string from the API.

        Raises:
            ValueError: If the role is unknown
        """
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            raise ValueError(f'Invalid role: {value!r}')
        return cls(value.strip().lower())

    @property
    def label_key(self) -> str:
        """Message key for the role's display label."""
        if self is Role.CUSTOMER:
            return 'role_customer'
        if self is Role.STAFF:
            return 'role_staff'
        if self is Role.ADMIN:
            return 'role_admin'
        raise AssertionError(f'Unhandled role: {self}')


STAFF_ROLES = frozenset({Role.STAFF, Role.ADMIN})


class UserProfile:
    """
    Snapshot of a user profile.

    Built with from_dict() from the API payload; to_dict() gives back the
    JSON-safe form persisted by the session store.
    """

    __slots__ = ('id', 'email', 'full_name', 'role', 'active', 'phone', 'extra')

    def __init__(self, id, email: str, role: Role, full_name: str = '',
                 active: bool = True, phone: str = None, extra: dict = None):
        object.__setattr__(self, 'id', id)
        object.__setattr__(self, 'email', email)
        object.__setattr__(self, 'full_name', full_name or '')
        object.__setattr__(self, 'role', Role.parse(role))
        object.__setattr__(self, 'active', bool(active))
        object.__setattr__(self, 'phone', phone)
        object.__setattr__(self, 'extra', dict(extra or {}))

    def __setattr__(self, name, value):
        raise AttributeError('UserProfile is immutable')

    @classmethod
    def from_dict(cls, data: dict) -> 'UserProfile':
        """
        Build a profile from an API or storage payload.

        Accepts both `id` and `customer_id`/`user_id` identifiers, and
        `is_active` given as bool or 0/1. A payload without id or email
        is kept as-is (id None, email empty); only the role is required
        to be known.

        Raises:
            ValueError: If the payload is not a mapping or the role is unknown
        """
        if not isinstance(data, dict):
            raise ValueError('User payload must be a mapping')

        user_id = data.get('id')
        if user_id is None:
            user_id = data.get('user_id', data.get('customer_id'))

        known = {'id', 'user_id', 'customer_id', 'email', 'full_name', 'role',
                 'is_active', 'phone', 'password'}
        extra = {k: v for k, v in data.items() if k not in known}

        return cls(
            id=user_id,
            email=data.get('email') or '',
            full_name=data.get('full_name') or '',
            role=data.get('role') or Role.CUSTOMER,
            active=data.get('is_active', True) not in (False, 0, '0', 'false'),
            phone=data.get('phone'),
            extra=extra,
        )

    def to_dict(self) -> dict:
        """Serialize to a JSON-safe dict."""
        data = dict(self.extra)
        data.update({
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role.value,
            'is_active': self.active,
            'phone': self.phone,
        })
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Read an extra profile attribute (avatar, address, ...)."""
        return self.extra.get(key, default)

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or self.role.value

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    # Flask-Login interface

    @property
    def is_authenticated(self) -> bool:
        """Required by Flask-Login."""
        return True

    @property
    def is_active(self) -> bool:
        """Required by Flask-Login."""
        return self.active

    @property
    def is_anonymous(self) -> bool:
        """Required by Flask-Login."""
        return False

    def get_id(self) -> str:
        """Required by Flask-Login. Falls back to the email when the API sent no id."""
        if self.id is not None:
            return str(self.id)
        return self.email or self.role.value

    def __eq__(self, other) -> bool:
        if not isinstance(other, UserProfile):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((self.id, self.email, self.role))

    def __repr__(self) -> str:
        return f'<UserProfile id={self.id} role={self.role.value}>'


def parse_user(data: Optional[dict]) -> Optional[UserProfile]:
    """Parse a profile payload, returning None for empty payloads."""
    if not data:
        return None
    return UserProfile.from_dict(data)
