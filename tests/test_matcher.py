#!/usr/bin/env python3
"""
Tests for PolicyMatcher: rule precedence, grouping per ADMX file and
exclusion of unmatched definitions.
"""
import logging
import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gpoadmx.matcher import PolicyMatcher, strip_namespace_prefix, strip_string_ref
from gpoadmx.models import MatchRule, PolicyDefinition, PolicyScope, RegistryPolicyEntry

logging.getLogger('gpoadmx').setLevel(logging.CRITICAL)

EXPLORER = "Software\\Policies\\Microsoft\\Windows\\Explorer"


def entry(key, value_name, data=1, scope=PolicyScope.MACHINE):
    return RegistryPolicyEntry(key=key, value_name=value_name, value_type=4,
                               value_data=data, scope=scope)


def definition(source_file, name, display_ref="", key=None, value_name=None, element_values=()):
    return PolicyDefinition(
        source_file=source_file,
        policy_name=name,
        display_name_ref=display_ref,
        registry_key=key,
        registry_value_name=value_name,
        source_path=f"/store/{source_file}",
        element_values=element_values,
    )


class TestHelpers(unittest.TestCase):

    def test_strip_namespace_prefix(self):
        self.assertEqual(strip_namespace_prefix("windows:NoDrives"), "NoDrives")
        self.assertIsNone(strip_namespace_prefix("NoDrives"))
        self.assertIsNone(strip_namespace_prefix(None))

    def test_strip_string_ref(self):
        self.assertEqual(strip_string_ref("$(string.NoDrives)"), "NoDrives")
        self.assertEqual(strip_string_ref("  Plain  "), "Plain")
        self.assertEqual(strip_string_ref(None), "")


class TestRules(unittest.TestCase):

    def setUp(self):
        self.matcher = PolicyMatcher()

    def test_exact_name_case_insensitive(self):
        matched = self.matcher.match_definition(
            definition("A.admx", "nodrives"), [entry(EXPLORER, "NoDrives")])
        self.assertEqual(matched.rule, MatchRule.EXACT_NAME)
        self.assertEqual((matched.registry_key, matched.value_name), (EXPLORER, "NoDrives"))

    def test_prefix_stripped_name(self):
        matched = self.matcher.match_definition(
            definition("A.admx", "windows:NoDrives"), [entry(EXPLORER, "NoDrives")])
        self.assertEqual(matched.rule, MatchRule.PREFIX_STRIPPED_NAME)

    def test_display_name_containment_both_ways(self):
        entries = [entry("Software\\Vendor", "HomepageLocation")]
        longer = self.matcher.match_definition(
            definition("A.admx", "Homepage1", "$(string.HomepageLocation_Recommended)"), entries)
        shorter = self.matcher.match_definition(
            definition("A.admx", "Homepage2", "$(string.Homepage)"), entries)
        self.assertEqual(longer.rule, MatchRule.DISPLAY_NAME)
        self.assertEqual(shorter.rule, MatchRule.DISPLAY_NAME)

    def test_registry_value_key_case_insensitive_value_exact(self):
        entries = [entry(EXPLORER.upper(), "nodrives"), entry(EXPLORER.upper(), "NoDrivesSetting")]
        d = definition("A.admx", "Policy17", "$(string.Policy17)", EXPLORER, "NoDrivesSetting")
        matched = self.matcher.match_definition(d, entries)
        self.assertEqual(matched.rule, MatchRule.REGISTRY_VALUE)
        self.assertEqual(matched.value_name, "NoDrivesSetting")

        exact_only = definition("A.admx", "Policy18", "$(string.Policy18)", EXPLORER, "NODRIVES")
        self.assertIsNone(self.matcher.match_definition(exact_only, entries[:1]))

    def test_element_values_consulted(self):
        d = definition("A.admx", "RestrictDrives", "$(string.Restrict)", EXPLORER, None,
                       element_values=((EXPLORER, "NoViewOnDrive"),))
        matched = self.matcher.match_definition(d, [entry(EXPLORER, "NoViewOnDrive")])
        self.assertEqual(matched.rule, MatchRule.REGISTRY_VALUE)

    def test_exact_name_wins_over_registry_value(self):
        by_name = entry("Software\\Other", "NoDrives")
        by_registry = entry(EXPLORER, "DriveMask")
        d = definition("A.admx", "NoDrives", "", EXPLORER, "DriveMask")

        matches = self.matcher.match([by_registry, by_name], [d])

        self.assertEqual(len(matches), 1)
        policy, = matches[0].matched_policies
        self.assertEqual(policy.rule, MatchRule.EXACT_NAME)
        self.assertEqual(policy.registry_key, "Software\\Other")

    def test_first_entry_in_input_order_wins(self):
        entries = [entry(EXPLORER, "NoDrives", scope=PolicyScope.USER),
                   entry(EXPLORER, "NoDrives", scope=PolicyScope.MACHINE)]
        matched = self.matcher.match_definition(definition("A.admx", "NoDrives"), entries)
        self.assertEqual(matched.scope, PolicyScope.USER)


class TestMatch(unittest.TestCase):

    def setUp(self):
        self.matcher = PolicyMatcher()

    def test_unmatched_definitions_and_files_left_out(self):
        catalog = [
            definition("Edge.admx", "HomepageLocation", "$(string.HomepageLocation)",
                       "Software\\Policies\\Microsoft\\Edge", "HomepageLocation"),
            definition("WindowsExplorer.admx", "NoDrives", "$(string.NoDrives)", EXPLORER, "NoDrives"),
            definition("WindowsExplorer.admx", "NoRun", "$(string.NoRun)", EXPLORER, "NoRun"),
        ]
        matches = self.matcher.match([entry(EXPLORER, "NoDrives")], catalog)

        self.assertEqual([m.file_name for m in matches], ["WindowsExplorer.admx"])
        self.assertEqual([p.policy_name for p in matches[0].matched_policies], ["NoDrives"])
        self.assertEqual(matches[0].file_path, "/store/WindowsExplorer.admx")

    def test_grouping_preserves_catalog_order(self):
        catalog = [
            definition("B.admx", "Zeta", key="Software\\B", value_name="Zeta"),
            definition("A.admx", "Alpha", key="Software\\A", value_name="Alpha"),
            definition("B.admx", "Beta", key="Software\\B", value_name="Beta"),
        ]
        entries = [entry("Software\\B", "Beta"), entry("Software\\A", "Alpha"),
                   entry("Software\\B", "Zeta")]

        matches = self.matcher.match(entries, catalog)

        self.assertEqual([m.file_name for m in matches], ["B.admx", "A.admx"])
        self.assertEqual([p.policy_name for p in matches[0].matched_policies], ["Zeta", "Beta"])

    def test_one_match_per_definition(self):
        d = definition("A.admx", "NoDrives", "$(string.NoDrives)", EXPLORER, "NoDrives")
        matches = self.matcher.match([entry(EXPLORER, "NoDrives"), entry(EXPLORER, "NoDrives")], [d])
        self.assertEqual(len(matches[0].matched_policies), 1)

    def test_no_entries_no_matches(self):
        d = definition("A.admx", "NoDrives", "$(string.NoDrives)", EXPLORER, "NoDrives")
        self.assertEqual(self.matcher.match([], [d]), [])


if __name__ == '__main__':
    unittest.main()
