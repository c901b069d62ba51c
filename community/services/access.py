"""Role / ownership based access decisions.

``can_perform`` is a pure function of the actor, the action and (for
ownership-gated actions) the resource. It never raises: a denial is a
``Decision`` carrying the reason, so callers can show it instead of
crashing. Endpoints turn a denial into an HTTP error with
``ensure_allowed``.

Rules:

* No actor: every action is denied as ``UNAUTHENTICATED``.
* Authenticated-only actions: any actor is allowed.
* Role-gated actions: the actor needs one of the listed roles.
* Ownership-gated actions: the author is allowed; anyone else needs one of
  the override roles listed for that action.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from community.core.exceptions import Forbidden, NotFound, Unauthenticated
from community.models.enums import RoleName


class Action(str, Enum):
    EDIT_TERMS = "edit_terms"
    EDIT_ROLES = "edit_roles"
    CREATE_NEWS = "create_news"
    EDIT_NEWS = "edit_news"
    APPROVE_NEWS = "approve_news"
    CREATE_ARTICLE = "create_article"
    EDIT_ARTICLE = "edit_article"
    CREATE_TIP = "create_tip"
    EDIT_TIP = "edit_tip"
    CREATE_COMMENT = "create_comment"
    EDIT_COMMENT = "edit_comment"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


class Owned(Protocol):
    author_id: int


@dataclass(frozen=True)
class Actor:
    """The authenticated account a request acts on behalf of."""

    id: int
    username: str
    roles: frozenset[RoleName] = field(default_factory=frozenset)

    def has_any_role(self, roles: frozenset[RoleName]) -> bool:
        return bool(self.roles & roles)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)

_ADMIN = frozenset({RoleName.ADMINISTRATOR})
_ADMIN_OR_MODERATOR = frozenset({RoleName.ADMINISTRATOR, RoleName.MODERATOR})

AUTHENTICATED_ACTIONS = frozenset(
    {
        Action.EDIT_TERMS,
        Action.CREATE_NEWS,
        Action.CREATE_ARTICLE,
        Action.CREATE_TIP,
        Action.CREATE_COMMENT,
    }
)

ROLE_GATED: dict[Action, frozenset[RoleName]] = {
    Action.EDIT_ROLES: _ADMIN,
    Action.APPROVE_NEWS: _ADMIN_OR_MODERATOR,
}

# Roles that may edit someone else's resource
OWNERSHIP_GATED: dict[Action, frozenset[RoleName]] = {
    Action.EDIT_ARTICLE: _ADMIN,
    Action.EDIT_NEWS: _ADMIN_OR_MODERATOR,
    Action.EDIT_TIP: frozenset({RoleName.ADMINISTRATOR, RoleName.LIBRARIAN}),
    Action.EDIT_COMMENT: _ADMIN_OR_MODERATOR,
}


def _deny(reason: DenyReason) -> Decision:
    return Decision(False, reason)


def can_perform(actor: Actor | None, action: Action, resource: Owned | None = None) -> Decision:
    if actor is None:
        return _deny(DenyReason.UNAUTHENTICATED)

    if action in AUTHENTICATED_ACTIONS:
        return ALLOW

    if action in ROLE_GATED:
        return ALLOW if actor.has_any_role(ROLE_GATED[action]) else _deny(DenyReason.FORBIDDEN)

    if action in OWNERSHIP_GATED:
        if resource is None:
            return _deny(DenyReason.NOT_FOUND)
        if resource.author_id == actor.id:
            return ALLOW
        if actor.has_any_role(OWNERSHIP_GATED[action]):
            return ALLOW
        return _deny(DenyReason.FORBIDDEN)

    return _deny(DenyReason.FORBIDDEN)


def ensure_allowed(decision: Decision) -> None:
    """Raise the error matching a denial; no-op when allowed."""
    if decision.allowed:
        return
    if decision.reason is DenyReason.UNAUTHENTICATED:
        raise Unauthenticated()
    if decision.reason is DenyReason.NOT_FOUND:
        raise NotFound()
    raise Forbidden()


def authorize(actor: Actor | None, action: Action, resource: Owned | None = None) -> Actor:
    """``can_perform`` + ``ensure_allowed``; returns the (now known) actor."""
    ensure_allowed(can_perform(actor, action, resource))
    return actor  # type: ignore[return-value]
