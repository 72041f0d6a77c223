"""Declarative permission metadata for service operations.

Contract methods are tagged with :func:`web_action`; the dispatch layer reads
the tags back and enforces them before calling an implementation, so service
implementations never check permissions themselves.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Final, TypeVar

PERMISSION_ADMIN: Final[str] = "admin"

WEB_ACTION_ATTR: Final[str] = "__web_action__"

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class WebAction:
    name: str
    require_permissions: frozenset[str]


def web_action(*, require_permissions: tuple[str, ...] = ()) -> Callable[[F], F]:
    def decorate(func: F) -> F:
        setattr(
            func,
            WEB_ACTION_ATTR,
            WebAction(name=func.__name__, require_permissions=frozenset(require_permissions)),
        )
        return func

    return decorate


def declared_actions(contract: type) -> dict[str, WebAction]:
    out: dict[str, WebAction] = {}
    for klass in reversed(contract.__mro__):
        for name, member in vars(klass).items():
            action = getattr(member, WEB_ACTION_ATTR, None)
            if isinstance(action, WebAction):
                out[name] = action
    return out


def required_permissions(contract: type, name: str) -> frozenset[str]:
    action = declared_actions(contract).get(name)
    if action is None:
        raise LookupError(f"{contract.__name__} declares no action {name!r}")
    return action.require_permissions
