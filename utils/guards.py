"""
Route guard decisions.

Pure functions of the auth state: they decide what a guarded route does and
never touch the request, the session or the response.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from models.user import Role, UserProfile


class GuardOutcome(str, Enum):
    RENDER_LOADING = 'render_loading'
    REDIRECT_LOGIN = 'redirect_login'
    ACCOUNT_INACTIVE = 'account_inactive'
    REDIRECT_UNAUTHORIZED = 'redirect_unauthorized'
    RENDER = 'render'


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    reason: str = ''

    @property
    def allowed(self) -> bool:
        return self.outcome == GuardOutcome.RENDER


RENDER = GuardDecision(GuardOutcome.RENDER)


def check_protected(loading: bool, user: Optional[UserProfile]) -> GuardDecision:
    """
    Decide access to a route that requires a logged-in, active user.

    Precedence: loading, then missing user, then inactive account.

    Args:
        loading: Auth state is still being restored
        user: Current user, or None

    Returns:
        GuardDecision
    """
    if loading:
        return GuardDecision(GuardOutcome.RENDER_LOADING, 'loading')
    if user is None:
        return GuardDecision(GuardOutcome.REDIRECT_LOGIN, 'no_user')
    if not user.is_active:
        # Blocking instead of redirecting to login avoids a redirect loop
        return GuardDecision(GuardOutcome.ACCOUNT_INACTIVE, 'inactive')
    return RENDER


def check_role(user: Optional[UserProfile], allowed_roles: Iterable[Role]) -> GuardDecision:
    """
    Decide access to a route restricted to a set of roles.

    An empty allowed set denies everyone.

    Args:
        user: Current user, or None
        allowed_roles: Roles permitted on the route

    Returns:
        GuardDecision
    """
    if user is None:
        return GuardDecision(GuardOutcome.REDIRECT_LOGIN, 'no_user')
    allowed = frozenset(Role.parse(role) for role in allowed_roles)
    if user.role not in allowed:
        return GuardDecision(GuardOutcome.REDIRECT_UNAUTHORIZED, f'role_{user.role.value}')
    return RENDER
