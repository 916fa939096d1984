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
AdmxCatalogIndexer - Index of <policy> elements found in a PolicyDefinitions store
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
import xml.etree.ElementTree as ET

from .config import LOGGER_NAME, DEFAULT_LANGUAGE
from .errors import AdmxParseError, PathNotFoundError, ScanCancelledError
from .models import PolicyDefinition
from .utils import find_child

logger = logging.getLogger(LOGGER_NAME)

# $(string.ID)
STRING_REF = re.compile(r"\$\(\s*string\.([A-Za-z0-9_.-]+)\s*\)")


class AdmxCatalogIndexer:
    """Indexer for the *.admx files directly under a policy definitions root."""

    def __init__(self, language: str = DEFAULT_LANGUAGE, max_workers: int = 1):
        """
        Args:
            language: ADML folder used to resolve $(string.X) display names
            max_workers: Number of threads scanning ADMX files; 1 scans
                         sequentially
        """
        self.language = language
        self.max_workers = max(1, int(max_workers or 1))
        self.files_scanned = 0
        self.files_failed = 0
        self.failures: list[AdmxParseError] = []

    @staticmethod
    def strip_ns(tag: str) -> str:
        """Remove XML namespace from tag."""
        return tag.split("}", 1)[-1]

    @staticmethod
    def resolve_string(value: str | None, strings: dict) -> str | None:
        """
        Resolve $(string.X) using an ADML stringTable.
        If not resolvable, return None.
        """
        if not value:
            return None
        m = STRING_REF.fullmatch(value.strip())
        if not m:
            return None
        return strings.get(m.group(1))

    @staticmethod
    def list_admx_files(root) -> list[Path]:
        """Return *.admx files directly under root, sorted by name."""
        return sorted(
            (p for p in Path(root).iterdir()
             if p.is_file() and p.suffix.lower() == ".admx"),
            key=lambda p: p.name.lower(),
        )

    def index(self, policy_definitions_root, cancel_event=None) -> list[PolicyDefinition]:
        """
        Build the list of policy definitions for a PolicyDefinitions store

        Args:
            policy_definitions_root: Directory holding *.admx files and
                                     <language>/*.adml folders
            cancel_event: Optional threading.Event; the scan stops before
                          the next file once it is set

        Raises:
            PathNotFoundError: the root directory does not exist
            ScanCancelledError: cancel_event was set during the scan
        """
        root = Path(policy_definitions_root)
        if not root.is_dir():
            raise PathNotFoundError(str(root))
        root = root.resolve()

        self.files_scanned = 0
        self.files_failed = 0
        self.failures = []

        admx_files = self.list_admx_files(root)
        logger.info(f"Indexing {len(admx_files)} ADMX files under {root}")

        if self.max_workers > 1 and len(admx_files) > 1:
            results = self._scan_parallel(admx_files, root, cancel_event)
        else:
            results = [self._scan_one(p, root, cancel_event) for p in admx_files]

        catalog = []
        for definitions, error in results:
            self.files_scanned += 1
            if error is not None:
                self.files_failed += 1
                self.failures.append(error)
                logger.warning(f"Skipping {error}")
                continue
            catalog.extend(definitions)

        logger.info(f"Indexed {len(catalog)} policies from {self.files_scanned} ADMX files "
                    f"({self.files_failed} skipped)")
        return catalog

    def _scan_parallel(self, admx_files, root, cancel_event):
        # Results are collected in submission order so the catalog keeps
        # the same order as a sequential scan.
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._scan_one, p, root, cancel_event)
                       for p in admx_files]
            try:
                return [f.result() for f in futures]
            except ScanCancelledError:
                for f in futures:
                    f.cancel()
                raise

    def _scan_one(self, admx_path, root, cancel_event):
        if cancel_event is not None and cancel_event.is_set():
            raise ScanCancelledError(f"ADMX scan cancelled before {admx_path.name}")
        try:
            return self.parse_file(admx_path, root), None
        except AdmxParseError as e:
            return [], e

    def parse_file(self, admx_path, policy_definitions_root=None) -> list[PolicyDefinition]:
        """
        Extract policy definitions from one ADMX file

        Raises:
            AdmxParseError: the file could not be read or is not XML
        """
        admx_path = Path(admx_path)
        base_dir = Path(policy_definitions_root) if policy_definitions_root else admx_path.parent
        try:
            tree = ET.parse(admx_path)
        except (ET.ParseError, OSError) as e:
            raise AdmxParseError(str(admx_path), e) from e

        strings = self.load_strings(base_dir, admx_path.stem)

        definitions = []
        seen_names: set[str] = set()
        for pol_block in tree.getroot().iter():
            if self.strip_ns(pol_block.tag) != "policies":
                continue

            for pol in pol_block:
                if self.strip_ns(pol.tag) != "policy":
                    continue

                name = (pol.attrib.get("name") or "").strip()
                if not name:
                    logger.debug(f"Unnamed policy element in {admx_path.name}")
                    continue
                if name in seen_names:
                    logger.warning(f"Duplicate policy '{name}' in {admx_path.name} (keeping first)")
                    continue
                seen_names.add(name)

                definitions.append(self._build_definition(pol, name, admx_path, strings))

        logger.debug(f"{admx_path.name}: {len(definitions)} policies")
        return definitions

    def _build_definition(self, pol: ET.Element, name: str, admx_path: Path,
                          strings: dict) -> PolicyDefinition:
        key = (pol.attrib.get("key") or "").replace("/", "\\").strip() or None
        value_name = (pol.attrib.get("valueName") or pol.attrib.get("valuename") or "").strip() or None
        display_ref = (pol.attrib.get("displayName") or "").strip()

        element_values = []
        for el in pol.iter():
            if el is pol:
                continue
            vn = (el.attrib.get("valueName") or "").strip()
            if not vn:
                continue
            k = (el.attrib.get("key") or "").replace("/", "\\").strip() or key
            if not k:
                continue
            pair = (k, vn)
            if pair != (key, value_name) and pair not in element_values:
                element_values.append(pair)

        return PolicyDefinition(
            source_file=admx_path.name,
            policy_name=name,
            display_name_ref=display_ref,
            registry_key=key,
            registry_value_name=value_name,
            source_path=str(admx_path.resolve()),
            policy_class=(pol.attrib.get("class") or "").strip(),
            display_name=self.resolve_string(display_ref, strings),
            element_values=tuple(element_values),
        )

    def _pick_locale_dir(self, base_dir: Path) -> Path | None:
        """
        Requested language folder, or en-US when that one is absent
        """
        locale_dir = find_child(base_dir, self.language)
        if locale_dir is None and self.language != DEFAULT_LANGUAGE:
            locale_dir = find_child(base_dir, DEFAULT_LANGUAGE)
        return locale_dir

    def load_strings(self, base_dir, stem: str) -> dict:
        """Load <string id="..."> entries of <base_dir>/<language>/<stem>.adml"""
        locale_dir = self._pick_locale_dir(Path(base_dir))
        adml_file = find_child(locale_dir, f"{stem}.adml") if locale_dir else None
        if adml_file is None:
            logger.debug(f"No ADML strings for {stem} under {base_dir}")
            return {}

        try:
            tree = ET.parse(adml_file)
        except (ET.ParseError, OSError) as e:
            logger.warning(f"ADML parse error: {adml_file}: {e}")
            return {}

        strings = {}
        for el in tree.getroot().iter():
            if self.strip_ns(el.tag) != "string":
                continue
            sid = el.attrib.get("id")
            if not sid:
                continue
            strings[sid] = (el.text or "").strip()
        return strings
