"""Per-client session state: the bearer token and the selected household.

WHY: Every API call needs the bearer token, and most household-scoped calls
need a household. Keeping both on an explicit object (one per TonieClient)
instead of module globals lets tests and host applications run several
independent sessions in one process.

HOW: Session is a small mutable holder. current_household() takes the
household loader as an argument so this module never talks HTTP itself.

RULES:
- The token is set only after a successful exchange, cleared on failure
- A household is auto-selected only when the user has exactly one
- select_household() trusts the caller; no membership check
- Not thread-safe; callers serialize access themselves
"""

from __future__ import annotations

from collections.abc import Callable

from tonie_cloud.api.errors import AmbiguousHousehold, NotAuthenticated
from tonie_cloud.api.models import Household


class Session:
    """Bearer token plus the optionally selected household."""

    def __init__(self) -> None:
        self._access_token: str | None = None
        self._household: Household | None = None

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None

    def access_token(self) -> str:
        """Return the bearer token, raising NotAuthenticated if there is none."""
        if self._access_token is None:
            raise NotAuthenticated()
        return self._access_token

    def set_access_token(self, token: str) -> None:
        self._access_token = token

    def clear_access_token(self) -> None:
        self._access_token = None

    def current_household(self, load_households: Callable[[], list[Household]]) -> Household:
        """Return the selected household, selecting it automatically if unambiguous.

        Args:
            load_households: Fetches the authenticated user's households.
                Only called when nothing has been selected yet.

        Raises:
            AmbiguousHousehold: The user has zero or several households and
                none was selected explicitly.
        """
        if self._household is not None:
            return self._household

        households = load_households()
        if len(households) != 1:
            raise AmbiguousHousehold(len(households))
        self._household = households[0]
        return self._household

    def select_household(self, household: Household) -> None:
        self._household = household
