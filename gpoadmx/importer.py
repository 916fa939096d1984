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
GpoAdmxImporter - registry.pol -> ADMX catalog -> matches -> import plan

The importer never talks to the destination configuration itself: each
included plan item is handed to a caller supplied sink, e.g. the API
client call that appends an ADMX file to a configuration object.
"""

import logging
import traceback
from dataclasses import dataclass, field

from .admx_catalog import AdmxCatalogIndexer
from .config import LOGGER_NAME, ImportOptions
from .matcher import PolicyMatcher
from .models import PolicyScope
from .planner import ImportPlanner, max_existing_sequence
from .polreader import PolicyFileReader

logger = logging.getLogger(LOGGER_NAME)


@dataclass
class ImportReport:
    """Plan of one import run plus the counts the CLI reports."""

    gpo_path: str
    machine_entries: int = 0
    user_entries: int = 0
    files_scanned: int = 0
    files_failed: int = 0
    policies_indexed: int = 0
    items_sent: int = 0
    items_failed: int = 0
    what_if: bool = False
    matches: list = field(default_factory=list)
    plan: list = field(default_factory=list)
    warnings: list = field(default_factory=list)

    @property
    def entries_parsed(self):
        return self.machine_entries + self.user_entries

    @property
    def matches_found(self):
        return len(self.matches)

    @property
    def policies_matched(self):
        return sum(len(m.matched_policies) for m in self.matches)

    @property
    def items_included(self):
        return sum(1 for item in self.plan if item.included)

    @property
    def items_skipped(self):
        return len(self.plan) - self.items_included

    def counts(self):
        return {
            "Machine entries": self.machine_entries,
            "User entries": self.user_entries,
            "Entries parsed": self.entries_parsed,
            "ADMX files scanned": self.files_scanned,
            "ADMX files failed": self.files_failed,
            "Policies indexed": self.policies_indexed,
            "ADMX files matched": self.matches_found,
            "Policies matched": self.policies_matched,
            "Items included": self.items_included,
            "Items skipped": self.items_skipped,
            "Items sent": self.items_sent,
            "Items failed": self.items_failed,
        }

    def to_dict(self):
        return {
            "meta": {"gpoPath": self.gpo_path, "whatIf": self.what_if, **self.counts()},
            "matches": [
                {
                    "file": m.file_name,
                    "path": m.file_path,
                    "policies": [
                        {
                            "name": p.policy_name,
                            "key": p.registry_key,
                            "valueName": p.value_name,
                            "rule": p.rule.value,
                            "scope": p.scope.value,
                            "displayName": p.display_name,
                            "class": p.policy_class,
                        }
                        for p in m.matched_policies
                    ],
                }
                for m in self.matches
            ],
            "plan": [item.to_dict() for item in self.plan],
            "warnings": [str(w) for w in self.warnings],
        }


class GpoAdmxImporter:
    """
    Runs the whole import for one GPO directory

    Typical usage:
        importer = GpoAdmxImporter(ImportOptions(language='en-US'))
        report = importer.run('/var/lib/freeipa/sysvol/example.com/Policies/{GUID}',
                              existing_sequences=[1, 2], sink=client.add_admx)
    """

    def __init__(self, options=None, reader=None, indexer=None, matcher=None, planner=None):
        self.options = options or ImportOptions()
        self.reader = reader or PolicyFileReader()
        self.indexer = indexer or AdmxCatalogIndexer(self.options.language,
                                                     self.options.max_workers)
        self.matcher = matcher or PolicyMatcher()
        self.planner = planner or ImportPlanner()

    def run(self, gpo_path, existing_sequences=(), sink=None, cancel_event=None):
        """
        Build the import plan for a GPO and hand included items to sink

        Args:
            gpo_path: GPO directory holding Machine/ and User/ registry.pol
            existing_sequences: Sequence numbers already used in the
                                destination configuration
            sink: Callable receiving each included ImportPlanItem; not
                  called in what-if mode
            cancel_event: Optional threading.Event cancelling the ADMX scan

        Raises:
            PathNotFoundError: the policy definitions root does not exist
            ScanCancelledError: cancel_event was set during the ADMX scan
        """
        options = self.options
        report = ImportReport(gpo_path=str(gpo_path), what_if=options.what_if)

        entries, counts = self.reader.read_gpo(gpo_path)
        report.machine_entries = counts.get(PolicyScope.MACHINE, 0)
        report.user_entries = counts.get(PolicyScope.USER, 0)
        logger.info(f"Parsed {report.entries_parsed} registry entries from {gpo_path}")

        catalog = self.indexer.index(options.policy_definitions_path, cancel_event)
        report.files_scanned = self.indexer.files_scanned
        report.files_failed = self.indexer.files_failed
        report.policies_indexed = len(catalog)

        report.matches = self.matcher.match(entries, catalog)

        report.plan = self.planner.plan(
            report.matches,
            max_existing_sequence(existing_sequences),
            options.policy_definitions_path,
            language=options.language,
            skip_list=options.skip_list,
            skip_enabled=options.skip_problematic,
        )
        report.warnings = list(self.planner.warnings)

        if options.what_if:
            logger.info("What-if mode: import plan built, nothing sent")
        elif sink is not None:
            self._hand_off(report, sink)

        return report

    @staticmethod
    def _hand_off(report, sink):
        for item in report.plan:
            if not item.included:
                continue
            try:
                sink(item)
                report.items_sent += 1
                logger.info(f"Sent {item.file_name} with sequence {item.sequence}")
            except Exception as exp:
                report.items_failed += 1
                logger.error(f"Failed to import {item.file_name}: {exp}")
                logger.debug(traceback.format_exc())
