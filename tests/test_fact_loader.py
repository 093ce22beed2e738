"""
Unit Tests for the fact loader

Tests for:
    - raw record conversion (groups, package infos, external dependency infos)
    - YAML facts documents
    - malformed facts
"""

import pytest

from visibility_policy.adapters import (
    PolicyFacts,
    assignment_from_record,
    group_from_record,
    load_facts,
    rule_from_record,
)
from visibility_policy.domain.models import InvalidFactError, VisibilityGroup

FACTS_YAML = """
groups:
  - name: api
    label: //tools/build/visibility:api
    package_group: //tools/build/visibility/groups/api
    visibility_allow_list: //tools/build/visibility/allowlists/api-exceptions
    visible_to_groups: [":impl"]
  - label: //tools/build/visibility:impl
    package_group: //tools/build/visibility/groups/impl
packages:
  - {package_name: core/api, group: "//tools/build/visibility:api"}
  - {package_name: core/impl, group: impl}
maven_deps:
  - label: //third_party:guava_info
    group: "//tools/build/visibility:api"
    include_patterns: ["@com_google_guava_*"]
    exclude_patterns: ["@com_google_guava_testlib*"]
"""


# =============================================================================
# Records
# =============================================================================

class TestRecords:

    def test_group_record(self):
        group = group_from_record({
            "name": "api",
            "label": "//tools/build/visibility:api",
            "visible_to_groups": [":impl", "//tools/build/visibility:app"],
        })
        assert group == VisibilityGroup(
            name="api",
            label="//tools/build/visibility:api",
            visible_to_groups=frozenset({"impl", "app"}),
        )

    def test_group_name_from_label(self):
        assert group_from_record({"label": "//tools/build/visibility:impl"}).name == "impl"

    def test_group_allow_list_aliases(self):
        assert group_from_record({"name": "a", "allow_list": "//allow:a"}).allow_list == "//allow:a"
        assert group_from_record({"name": "a", "visibility_allow_list": "//allow:b"}).allow_list == "//allow:b"

    def test_group_without_name(self):
        with pytest.raises(InvalidFactError, match="name"):
            group_from_record({"package_group": "//groups/x"})

    def test_visible_to_groups_must_be_a_list(self):
        with pytest.raises(InvalidFactError, match="visible_to_groups"):
            group_from_record({"name": "a", "visible_to_groups": ":b"})

    def test_assignment_record(self):
        assignment = assignment_from_record({"package_name": "//core/api", "group": ":api"})
        assert assignment.package_path == "core/api"
        assert assignment.group_name == "api"

    def test_assignment_without_group(self):
        with pytest.raises(InvalidFactError, match="group"):
            assignment_from_record({"label": "//core/api:package_info", "package_name": "core/api"})

    def test_assignment_with_external_package(self):
        with pytest.raises(InvalidFactError):
            assignment_from_record({"package_name": "@maven//foo", "group": "api"})

    def test_rule_record(self):
        rule = rule_from_record({
            "label": "//third_party:guava_info",
            "group": "//tools/build/visibility:api",
            "include_patterns": ["@com_google_guava_*"],
        })
        assert rule.owner_group == "api"
        assert rule.include_patterns == frozenset({"@com_google_guava_*"})
        assert rule.exclude_patterns == frozenset()
        assert rule.defining_label == "//third_party:guava_info"

    def test_rule_patterns_must_be_lists(self):
        with pytest.raises(InvalidFactError, match="include_patterns"):
            rule_from_record({"group": "api", "include_patterns": "@com_google_guava_*"})

    def test_invalid_facts_are_value_errors(self):
        with pytest.raises(ValueError):
            rule_from_record({"label": "//third_party:x"})

    @pytest.mark.parametrize("build", [group_from_record, assignment_from_record, rule_from_record])
    def test_record_must_be_a_mapping(self, build):
        with pytest.raises(InvalidFactError, match="expected a mapping"):
            build("api")


# =============================================================================
# Documents
# =============================================================================

class TestLoadFacts:

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "facts.yaml"
        path.write_text(FACTS_YAML)

        facts = load_facts(path)

        assert [g.name for g in facts.groups] == ["api", "impl"]
        assert facts.groups[0].visible_to_groups == frozenset({"impl"})
        assert [(a.package_path, a.group_name) for a in facts.assignments] == [
            ("core/api", "api"),
            ("core/impl", "impl"),
        ]
        assert facts.rules[0].owner_group == "api"
        assert facts.rules[0].exclude_patterns == frozenset({"@com_google_guava_testlib*"})

    def test_load_accepts_str_path(self, tmp_path):
        path = tmp_path / "facts.yaml"
        path.write_text(FACTS_YAML)
        assert len(load_facts(str(path)).groups) == 2

    def test_empty_document(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        facts = load_facts(path)

        assert facts.groups == [] and facts.assignments == [] and facts.rules == []

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("groups: a: b\n")

        with pytest.raises(InvalidFactError, match="broken.yaml"):
            load_facts(path)

    def test_document_must_be_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(InvalidFactError, match="mapping"):
            load_facts(path)

    @pytest.mark.parametrize("section", ["groups", "packages", "maven_deps"])
    def test_section_records_must_be_mappings(self, section):
        with pytest.raises(InvalidFactError, match=section):
            PolicyFacts.from_dict({section: ["api"]})

    def test_section_must_be_a_list(self):
        with pytest.raises(InvalidFactError, match="must be a list of records"):
            PolicyFacts.from_dict({"packages": {"package_name": "core/api", "group": "api"}})

    def test_scalar_records_in_yaml(self, tmp_path):
        path = tmp_path / "facts.yaml"
        path.write_text("groups: [api, impl]\n")

        with pytest.raises(InvalidFactError, match="'api'"):
            load_facts(path)

    def test_to_dict_reloads(self, facts):
        reloaded = PolicyFacts.from_dict(facts.to_dict())

        assert sorted(reloaded.groups, key=lambda g: g.name) == sorted(facts.groups, key=lambda g: g.name)
        assert sorted(reloaded.assignments, key=lambda a: a.package_path) == \
            sorted(facts.assignments, key=lambda a: a.package_path)
        assert reloaded.rules == facts.rules
