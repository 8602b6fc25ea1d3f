import pytest

from app.core.config import Settings
from app.core.exceptions import Forbidden
from app.rbac.access_policy import (
    AccessDecision,
    AccessLevel,
    AccessPolicy,
    has_role,
    path_matches,
)

USER = frozenset({"ROLE_USER"})
ADMIN = frozenset({"ROLE_ADMIN"})


@pytest.fixture
def policy() -> AccessPolicy:
    return AccessPolicy.from_settings(Settings())


@pytest.mark.parametrize(
    "pattern, path, expected",
    [
        ("/login", "/login", True),
        ("/login", "/login/", True),
        ("/login", "/login/extra", False),
        ("/alumnos/**", "/alumnos", True),
        ("/alumnos/**", "/alumnos/7/edit", True),
        ("/alumnos/**", "/alumnosx", False),
        ("/**", "/anything", True),
    ],
)
def test_path_matches(pattern, path, expected):
    assert path_matches(pattern, path) is expected


def test_has_role_accepts_prefixed_and_bare_authorities():
    assert has_role({"ROLE_ADMIN"}, "ADMIN")
    assert has_role({"ADMIN"}, "ADMIN")
    assert has_role({"ROLE_ADMIN"}, "ROLE_ADMIN")
    assert not has_role({"ROLE_USER"}, "ADMIN")


def test_public_paths_need_no_session(policy):
    for path in ("/login", "/registro", "/css/site.css", "/health"):
        assert policy.check(path, None) == AccessDecision.ALLOW


def test_role_gated_path(policy):
    assert policy.check("/alumnos/x", None) == AccessDecision.LOGIN_REQUIRED
    with pytest.raises(Forbidden):
        policy.check("/alumnos/x", USER)
    assert policy.check("/alumnos/x", ADMIN) == AccessDecision.ALLOW


def test_authenticated_paths(policy):
    assert policy.check("/products/y", None) == AccessDecision.LOGIN_REQUIRED
    assert policy.check("/products/y", USER) == AccessDecision.ALLOW


def test_unmatched_path_is_denied_by_default(policy):
    rule = policy.decide("/somewhere/else")
    assert rule.level == AccessLevel.AUTHENTICATED
    assert policy.check("/somewhere/else", None) == AccessDecision.LOGIN_REQUIRED


def test_first_matching_rule_wins():
    policy = AccessPolicy(
        public_paths=["/docs/public"],
        role_gated_paths={"/docs/**": "ADMIN"},
    )
    assert policy.decide("/docs/public").level == AccessLevel.PUBLIC
    assert policy.decide("/docs/secret").level == AccessLevel.ROLE
