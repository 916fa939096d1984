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
ImportPlanner - Ordered, sequence-numbered import plan for matched ADMX files
"""

import logging
import os
from pathlib import Path

from .config import LOGGER_NAME, DEFAULT_LANGUAGE
from .errors import MissingArtifactWarning
from .models import ImportPlanItem, PlanDecision
from .utils import find_child

logger = logging.getLogger(LOGGER_NAME)


def max_existing_sequence(sequences):
    """Highest sequence already used by the destination, None if there is none."""
    sequences = [int(s) for s in sequences if s is not None]
    return max(sequences) if sequences else None


class ImportPlanner:
    """
    Turns AdmxMatch records into ImportPlanItem records

    Sequence numbers go to included items only, so skipped files never
    leave a gap in the numbering.
    """

    def __init__(self):
        self.warnings: list[MissingArtifactWarning] = []

    def plan(self, matches, existing_max_sequence, policy_definitions_root,
             language=DEFAULT_LANGUAGE, skip_list=frozenset(), skip_enabled=False):
        """
        Build the import plan

        Args:
            matches: AdmxMatch records in matcher order
            existing_max_sequence: Highest sequence already present in the
                                   destination configuration, or None
            policy_definitions_root: Store holding <language>/*.adml
            language: ADML language folder
            skip_list: File names of known-problematic ADMX files
            skip_enabled: Whether skip_list is honoured

        Returns:
            List of ImportPlanItem, one per match, in matcher order
        """
        self.warnings = []
        sequence = (existing_max_sequence or 0) + 1
        if sequence < 1:
            sequence = 1
        skip_names = {name.lower() for name in skip_list} if skip_enabled else set()
        root = Path(policy_definitions_root)
        locale_dir = find_child(root, language) or root / language

        items = []
        for match in matches:
            admx_path = match.file_path
            adml_path = str(locale_dir / (Path(match.file_name).stem + ".adml"))

            if match.file_name.lower() in skip_names:
                logger.info(f"Skipping problematic ADMX {match.file_name}")
                items.append(ImportPlanItem(admx_path, adml_path, None,
                                            PlanDecision.SKIP_PROBLEMATIC,
                                            adml_exists=None))
                continue

            if not os.path.isfile(admx_path):
                logger.warning(f"ADMX file disappeared before import: {admx_path}")
                items.append(ImportPlanItem(admx_path, adml_path, None,
                                            PlanDecision.SKIP_MISSING_FILE,
                                            adml_exists=None))
                continue

            adml_found = find_child(locale_dir, Path(adml_path).name)
            if adml_found is not None:
                adml_path = str(adml_found)
            else:
                warning = MissingArtifactWarning(admx_path, adml_path)
                self.warnings.append(warning)
                logger.warning(str(warning))

            items.append(ImportPlanItem(admx_path, adml_path, sequence,
                                        PlanDecision.INCLUDE,
                                        adml_exists=adml_found is not None))
            sequence += 1

        return items
