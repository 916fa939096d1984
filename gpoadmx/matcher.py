#
# gpoadmx - GPO registry.pol to ADMX import planner
#
# Copyright (C) 2025 BaseALT Ltd.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""
PolicyMatcher - Correlate registry.pol entries with ADMX policy definitions

registry.pol only knows raw registry paths while policy names and
display names drift between tool versions, so several rules are tried
per definition, most specific last:

    1. policy name == entry value name
    2. policy name without its "namespace:" prefix == entry value name
    3. $(string.X) display name reference contains, or is contained
       in, the entry value name
    4. declared registry key and value name == entry key and value name

All comparisons ignore case except the value name of rule 4.
"""

import logging

from .admx_catalog import STRING_REF
from .config import LOGGER_NAME
from .models import AdmxMatch, MatchedPolicy, MatchRule

logger = logging.getLogger(LOGGER_NAME)


def strip_namespace_prefix(name: str | None) -> str | None:
    """
    Normalize names like:
      BaseALT:ALT_System -> ALT_System
    Returns None when the name carries no prefix.
    """
    if not name or ":" not in name:
        return None
    return name.split(":", 1)[1].strip() or None


def strip_string_ref(ref: str | None) -> str:
    """$(string.NoDrives) -> NoDrives; anything else is returned trimmed."""
    if not ref:
        return ""
    ref = ref.strip()
    m = STRING_REF.fullmatch(ref)
    return m.group(1) if m else ref


class PolicyMatcher:
    """Pure, order-preserving matcher of registry entries against a catalog."""

    def match(self, entries, catalog) -> list[AdmxMatch]:
        """
        Group policy definitions satisfied by at least one entry per ADMX file

        Args:
            entries: Sequence of RegistryPolicyEntry
            catalog: Sequence of PolicyDefinition in catalog scan order

        Returns:
            List of AdmxMatch in catalog order; files without a matched
            policy are left out
        """
        entries = list(entries)
        groups: dict[str, tuple[str, list]] = {}

        for definition in catalog:
            matched = self.match_definition(definition, entries)
            if matched is None:
                continue
            path = definition.source_path or definition.source_file
            groups.setdefault(definition.source_file, (path, []))[1].append(matched)

        matches = [
            AdmxMatch(file_name=name, file_path=path, matched_policies=tuple(policies))
            for name, (path, policies) in groups.items()
        ]
        logger.info(f"Matched {sum(len(m.matched_policies) for m in matches)} policies "
                    f"in {len(matches)} ADMX files")
        return matches

    def match_definition(self, definition, entries) -> MatchedPolicy | None:
        """Return the first rule/entry pair satisfying the definition."""
        for rule, predicate in self._rules(definition):
            for entry in entries:
                if predicate(entry):
                    logger.debug(f"{definition.source_file}:{definition.policy_name} "
                                 f"matched {entry.full_path} by {rule.value}")
                    return MatchedPolicy(
                        policy_name=definition.policy_name,
                        registry_key=entry.key,
                        value_name=entry.value_name,
                        rule=rule,
                        scope=entry.scope,
                        display_name=definition.display_name,
                        policy_class=definition.policy_class,
                    )
        return None

    @staticmethod
    def _rules(definition):
        name = definition.policy_name.lower()
        yield MatchRule.EXACT_NAME, lambda e: e.value_name.lower() == name

        stripped = strip_namespace_prefix(definition.policy_name)
        if stripped:
            stripped = stripped.lower()
            yield MatchRule.PREFIX_STRIPPED_NAME, lambda e: e.value_name.lower() == stripped

        display = strip_string_ref(definition.display_name_ref).lower()
        if display:
            def display_predicate(e):
                value_name = e.value_name.lower()
                return value_name in display or display in value_name
            yield MatchRule.DISPLAY_NAME, display_predicate

        pairs = []
        if definition.registry_key and definition.registry_value_name:
            pairs.append((definition.registry_key, definition.registry_value_name))
        pairs.extend(definition.element_values)
        for key, value_name in pairs:
            yield MatchRule.REGISTRY_VALUE, _registry_predicate(key, value_name)


def _registry_predicate(key, value_name):
    key = key.lower()
    return lambda e: e.key.lower() == key and e.value_name == value_name
