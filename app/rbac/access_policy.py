"""
Access policy: which paths need what.

Rules are checked in a fixed order and the first match wins:

1. public paths            → anyone
2. role-gated path prefixes → an authenticated identity holding the role
3. authenticated paths     → any authenticated identity
4. anything else           → any authenticated identity (deny by default)

Patterns follow the usual servlet style: ``/login`` matches that path
only (a trailing slash is tolerated), ``/alumnos/**`` matches
``/alumnos`` and everything below it.

An anonymous caller on any non-public path is sent to the login page,
role-gated paths included.  Only an authenticated caller who lacks the
role gets Forbidden.
"""

import enum
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from app.core.exceptions import Forbidden

logger = logging.getLogger("rbac")

ROLE_PREFIX = "ROLE_"


class AccessLevel(str, enum.Enum):
    PUBLIC = "PUBLIC"
    AUTHENTICATED = "AUTHENTICATED"
    ROLE = "ROLE"


class AccessDecision(str, enum.Enum):
    ALLOW = "ALLOW"
    LOGIN_REQUIRED = "LOGIN_REQUIRED"


@dataclass(frozen=True)
class AccessRule:
    pattern: str
    level: AccessLevel
    role: str | None = None


def _normalize(path: str) -> str:
    if len(path) > 1 and path.endswith("/"):
        return path.rstrip("/") or "/"
    return path


def path_matches(pattern: str, path: str) -> bool:
    path = _normalize(path)
    if pattern.endswith("/**"):
        base = _normalize(pattern[:-3]) or "/"
        if base == "/":
            return True
        return path == base or path.startswith(base + "/")
    return path == _normalize(pattern)


def has_role(authorities: Iterable[str], role: str) -> bool:
    """`ADMIN` is satisfied by either `ROLE_ADMIN` or a bare `ADMIN` authority."""
    bare = role[len(ROLE_PREFIX):] if role.startswith(ROLE_PREFIX) else role
    granted = set(authorities)
    return bare in granted or ROLE_PREFIX + bare in granted


class AccessPolicy:
    def __init__(
        self,
        public_paths: Iterable[str] = (),
        role_gated_paths: Mapping[str, str] | None = None,
        authenticated_paths: Iterable[str] = (),
    ):
        rules: list[AccessRule] = []
        rules += [AccessRule(p, AccessLevel.PUBLIC) for p in public_paths]
        rules += [
            AccessRule(p, AccessLevel.ROLE, role)
            for p, role in (role_gated_paths or {}).items()
        ]
        rules += [AccessRule(p, AccessLevel.AUTHENTICATED) for p in authenticated_paths]
        self.rules: tuple[AccessRule, ...] = tuple(rules)

    @classmethod
    def from_settings(cls, settings) -> "AccessPolicy":
        return cls(
            public_paths=settings.PUBLIC_PATHS,
            role_gated_paths=settings.ROLE_GATED_PATHS,
            authenticated_paths=settings.AUTHENTICATED_PATHS,
        )

    def decide(self, path: str) -> AccessRule:
        for rule in self.rules:
            if path_matches(rule.pattern, path):
                return rule
        return AccessRule("**", AccessLevel.AUTHENTICATED)

    def check(self, path: str, authorities: Iterable[str] | None) -> AccessDecision:
        """
        Decide whether a request may proceed.

        `authorities` is None for an anonymous caller.  Raises Forbidden
        when the caller is authenticated but lacks the required role.
        """
        rule = self.decide(path)
        if rule.level == AccessLevel.PUBLIC:
            return AccessDecision.ALLOW
        if authorities is None:
            return AccessDecision.LOGIN_REQUIRED
        if rule.level == AccessLevel.ROLE and not has_role(authorities, rule.role or ""):
            logger.warning("Access denied to %s, role %s required", path, rule.role)
            raise Forbidden(path, rule.role or "")
        return AccessDecision.ALLOW
