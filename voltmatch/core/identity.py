from dataclasses import dataclass
from typing import Protocol

ANONYMOUS_NAME = "Anonymous"


class IdentityProvider(Protocol):
    def current_user_id(self) -> str: ...
    def current_user_display_name(self) -> str: ...


@dataclass(frozen=True)
class Identity:
    """Caller identity as handed over by the upstream identity provider."""
    user_id: str = ""
    display_name: str = ANONYMOUS_NAME

    def current_user_id(self) -> str:
        return self.user_id or ""

    def current_user_display_name(self) -> str:
        return self.display_name or ANONYMOUS_NAME


ANONYMOUS = Identity()
