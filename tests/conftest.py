"""
Test Configuration and Fixtures
================================

Shared pytest fixtures for testing the visibility policy engine.

Usage:
    pytest tests/                    # Run all tests
    pytest tests/ -v                 # Verbose output
    pytest tests/ -k "classifier"    # Run only classifier tests
    pytest tests/ -m "not integration"  # Skip document-level integration tests
"""

import pytest
from pathlib import Path
from typing import Dict, List

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from visibility_policy.adapters.fact_loader import PolicyFacts
from visibility_policy.domain.models import PackageAssignment, PatternRule, VisibilityGroup
from visibility_policy.domain.services import GroupGraph, PackageIndex, PatternClassifier


# =============================================================================
# Custom Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "integration: marks integration tests")


# =============================================================================
# Policy Fixtures
# =============================================================================

class StaticReverseDeps:
    """Reverse-dependency resolver backed by a dict, recording every call."""

    def __init__(self, rdeps: Dict[str, List[str]]):
        self.rdeps = rdeps
        self.calls: List[str] = []

    def __call__(self, package: str) -> List[str]:
        self.calls.append(package)
        return list(self.rdeps.get(package, []))


@pytest.fixture
def groups() -> List[VisibilityGroup]:
    """
    Layered policy:
        api   -> visible to impl, app
        impl  -> visible to app
        app   -> visible to nobody
        tests -> visible to itself
    """
    return [
        VisibilityGroup(
            name="api",
            label="//tools/build/visibility:api",
            package_group="//tools/build/visibility/groups/api",
            allow_list="//tools/build/visibility/allowlists/api-exceptions",
            visible_to_groups=frozenset({":impl", "app"}),
        ),
        VisibilityGroup(
            name="impl",
            label="//tools/build/visibility:impl",
            package_group="//tools/build/visibility/groups/impl",
            visible_to_groups=frozenset({"app"}),
        ),
        VisibilityGroup(
            name="app",
            label="//tools/build/visibility:app",
            package_group="//tools/build/visibility/groups/app",
        ),
        VisibilityGroup(
            name="tests",
            label="//tools/build/visibility:tests",
            visible_to_groups=frozenset({"tests"}),
        ),
    ]


@pytest.fixture
def assignments() -> List[PackageAssignment]:
    return [
        PackageAssignment("core/api", "api"),
        PackageAssignment("core/api/model", "api"),
        PackageAssignment("core/impl", "impl"),
        PackageAssignment("core/impl/db", "impl"),
        PackageAssignment("core/impl/cache", "impl"),
        PackageAssignment("core/impl/queue", "impl"),
        PackageAssignment("apps/web", "app"),
        PackageAssignment("apps/cli", "app"),
        PackageAssignment("testing/fixtures", "tests"),
    ]


@pytest.fixture
def rules() -> List[PatternRule]:
    return [
        PatternRule(
            owner_group="api",
            include_patterns=frozenset({"@com_google_guava_*"}),
            defining_label="//third_party:guava_info",
        ),
        PatternRule(
            owner_group="impl",
            include_patterns=frozenset({"@org_postgresql_*", "@io_netty_*"}),
            exclude_patterns=frozenset({"@io_netty_internal_*"}),
            defining_label="//third_party:impl_info",
        ),
    ]


@pytest.fixture
def graph(groups) -> GroupGraph:
    return GroupGraph.build(groups)


@pytest.fixture
def index(assignments) -> PackageIndex:
    return PackageIndex.build(assignments)


@pytest.fixture
def classifier(rules) -> PatternClassifier:
    return PatternClassifier.build(rules)


@pytest.fixture
def rdeps() -> StaticReverseDeps:
    return StaticReverseDeps({
        "core/api": [
            "core/api",             # self
            "core/api/model",       # sub-package
            "core/impl",            # impl is allowed
            "apps/web",             # app is allowed
            "testing/fixtures",     # tests is not allowed
            "scripts/tool",         # outside any group
        ],
        "core/impl": [
            "core/impl/db",         # sub-package
            "core",                 # parent
            "core/api",             # api is not allowed
            "apps/cli",
            "testing/fixtures",
            "experimental/a",
            "experimental/b",
        ],
        "apps/web": ["apps/cli"],
    })


@pytest.fixture
def facts(groups, assignments, rules) -> PolicyFacts:
    return PolicyFacts(groups=groups, assignments=assignments, rules=rules)
