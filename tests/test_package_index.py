"""
Unit Tests for PackageIndex and package labels

Tests for:
    - group lookup, absence and duplicate assignment handling
    - group -> packages view and membership listing
    - package path normalisation, containment and wildcard expressions
"""

import pytest

from visibility_policy.domain.models import (
    DuplicateAssignmentError,
    GroupNotFoundError,
    PackageAssignment,
    PackageExpression,
    ensure_target_name,
    group_name_from_reference,
    is_nested,
    normalize_package_path,
    simplify_label,
)
from visibility_policy.domain.services import PackageIndex


# =============================================================================
# PackageIndex
# =============================================================================

class TestPackageIndex:

    def test_group_of(self, index):
        assert index.group_of("core/impl/db") == "impl"

    def test_group_of_accepts_label_form(self, index):
        assert index.group_of("//apps/web") == "app"

    def test_unassigned_package_has_no_group(self, index):
        assert index.group_of("scripts/tool") is None

    def test_group_is_not_inherited_by_subpackages(self, index):
        assert index.group_of("apps/web/static") is None

    @pytest.mark.parametrize("bad", [None, "", "   ", "//"])
    def test_empty_identifiers_rejected(self, index, bad):
        with pytest.raises(ValueError):
            index.group_of(bad)

    def test_conflicting_assignment_is_fatal(self):
        with pytest.raises(DuplicateAssignmentError) as exc_info:
            PackageIndex.build([
                PackageAssignment("lib/x", "api"),
                PackageAssignment("//lib/x", "impl"),
            ])
        message = str(exc_info.value)
        assert "//lib/x" in message
        assert "'api'" in message and "'impl'" in message

    def test_repeated_identical_assignment_collapses(self):
        index = PackageIndex.build([
            PackageAssignment("lib/x", "api"),
            PackageAssignment("lib/x", "//tools/build/visibility:api"),
        ])
        assert len(index) == 1
        assert index.group_of("lib/x") == "api"

    def test_packages_of(self, index):
        assert index.packages_of("impl") == ("core/impl", "core/impl/cache", "core/impl/db", "core/impl/queue")
        assert index.packages_of("nobody") == ()

    def test_groups_and_packages_sorted(self, index):
        assert index.groups() == ["api", "app", "impl", "tests"]
        assert index.packages() == sorted(index.packages())

    def test_membership(self, index, graph):
        assert index.membership(["app"], graph) == {"app": ["//apps/cli", "//apps/web"]}

    def test_membership_of_undefined_group(self, index, graph):
        with pytest.raises(GroupNotFoundError):
            index.membership(["app", "ghost"], graph)


# =============================================================================
# Labels
# =============================================================================

class TestLabels:

    @pytest.mark.parametrize("raw,expected", [
        ("foo/bar", "foo/bar"),
        ("//foo/bar", "foo/bar"),
        ("//foo/bar/", "foo/bar"),
    ])
    def test_normalize_package_path(self, raw, expected):
        assert normalize_package_path(raw) == expected

    @pytest.mark.parametrize("raw", ["@repo//foo", "//foo:bar"])
    def test_normalize_rejects_non_packages(self, raw):
        with pytest.raises(ValueError):
            normalize_package_path(raw)

    def test_is_nested_is_segment_based(self):
        assert is_nested("foo/bar", "foo")
        assert is_nested("foo", "foo/bar")
        assert is_nested("foo", "foo")
        assert not is_nested("foobar", "foo")
        assert not is_nested("foo/baz", "foo/bar")

    @pytest.mark.parametrize("reference,expected", [
        (":api", "api"),
        ("api", "api"),
        ("//tools/build/visibility:api", "api"),
        ("//tools/build/visibility/api", "api"),
    ])
    def test_group_name_from_reference(self, reference, expected):
        assert group_name_from_reference(reference) == expected

    def test_simplify_label(self):
        assert simplify_label("//groups/api:api") == "//groups/api"
        assert simplify_label("//groups/api:other") == "//groups/api:other"
        assert simplify_label("//groups/api") == "//groups/api"

    def test_ensure_target_name(self):
        assert ensure_target_name("//allowlists/api-exceptions") == "//allowlists/api-exceptions:api-exceptions"
        assert ensure_target_name("//allowlists:x") == "//allowlists:x"


class TestPackageExpression:

    def test_recursive_root_covers_everything(self):
        expr = PackageExpression.parse("//...")
        assert expr.covers("a")
        assert expr.covers("a/b/c")

    @pytest.mark.parametrize("text", ["//foo/...", "//foo/...:all", "foo/..."])
    def test_recursive_package(self, text):
        expr = PackageExpression.parse(text)
        assert expr.covers("foo")
        assert expr.covers("foo/bar")
        assert not expr.covers("foobar")

    @pytest.mark.parametrize("text", ["//foo", "//foo:all", "//foo:*", "//foo:all-targets"])
    def test_single_package(self, text):
        expr = PackageExpression.parse(text)
        assert expr.covers("foo")
        assert not expr.covers("foo/bar")

    @pytest.mark.parametrize("text", ["", "-//foo/...", "@repo//foo", "//foo:target"])
    def test_invalid_expressions(self, text):
        with pytest.raises(ValueError):
            PackageExpression.parse(text)
