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
PolicyFileReader - Decoder for Group Policy registry.pol files

The file is a "PReg" signature, a 4-byte version and a flat run of
bracketed records:

    [key;value;type;size;data]

key and value are UTF-16LE strings terminated by a zero code unit,
type and size are little-endian 32-bit integers and the brackets and
semicolons are UTF-16LE code units as well.
"""

import logging
import struct
from pathlib import Path

from .config import LOGGER_NAME, MACHINE_DIR, USER_DIR, REGISTRY_POL_NAME
from .errors import FormatError, RecordParseError
from .models import PolicyScope, RegistryPolicyEntry, RegistryValueType
from .utils import find_child

logger = logging.getLogger(LOGGER_NAME)

SIGNATURE = b"PReg"
HEADER_SIZE = 8
TRAILER_SIZE = 8
MIN_FILE_SIZE = 16

OPEN_BRACKET = "[".encode("utf-16-le")
CLOSE_BRACKET = "]".encode("utf-16-le")
SEPARATOR = ";".encode("utf-16-le")
TERMINATOR = b"\x00\x00"


class PolicyFileReader:
    """
    Reader for registry.pol files

    A corrupt record never aborts the file: it is skipped and the cursor
    moves on by one code unit. A missing, truncated or unsigned file
    reads as zero entries.

    Typical usage:
        reader = PolicyFileReader()
        entries = reader.parse('/var/lib/freeipa/sysvol/example.com/'
                               'Policies/{GUID}/Machine/Registry.pol')
    """

    scope_dirs = {
        PolicyScope.MACHINE: MACHINE_DIR,
        PolicyScope.USER: USER_DIR,
    }

    def parse(self, file_path, scope=None):
        """
        Parse a registry.pol file

        Args:
            file_path: Path to the registry.pol file
            scope: PolicyScope of the entries; inferred from the parent
                   directory name (Machine/User) when omitted

        Returns:
            List of RegistryPolicyEntry, empty if the file doesn't exist
            or is not a registry.pol file
        """
        path = Path(file_path)
        if scope is None:
            scope = PolicyScope.from_dir_name(path.parent.name) or PolicyScope.MACHINE

        if not path.is_file():
            logger.debug(f"registry.pol file not found at {path}")
            return []

        try:
            data = path.read_bytes()
        except OSError as exp:
            logger.warning(f"Failed to read registry.pol file at {path}: {exp}")
            return []

        entries = self.parse_bytes(data, scope, source=path)
        logger.debug(f"Read {len(entries)} {scope.value} entries from {path}")
        return entries

    def parse_bytes(self, data, scope=PolicyScope.MACHINE, source="<buffer>"):
        """Decode an in-memory registry.pol buffer, tolerating bad input."""
        try:
            return self.decode(data, scope)
        except FormatError as exp:
            logger.warning(f"Ignoring {source}: {exp}")
            return []

    def decode(self, data, scope=PolicyScope.MACHINE):
        """
        Decode a registry.pol buffer

        Raises:
            FormatError: buffer is shorter than 16 bytes or lacks the
                         PReg signature
        """
        if len(data) < MIN_FILE_SIZE:
            raise FormatError(f"file is too short ({len(data)} bytes)")
        if data[:len(SIGNATURE)] != SIGNATURE:
            raise FormatError(f"bad signature {data[:len(SIGNATURE)]!r}")

        entries = []
        cursor = HEADER_SIZE
        end = len(data) - TRAILER_SIZE
        while cursor < end:
            try:
                entry, cursor_next = self._read_record(data, cursor, scope)
            except RecordParseError as exp:
                logger.debug(f"Skipping malformed registry.pol {exp}")
                cursor += 2
                continue

            cursor = cursor_next
            if entry is not None:
                entries.append(entry)

        return entries

    def _read_record(self, data, start, scope):
        if data[start:start + 2] != OPEN_BRACKET:
            raise RecordParseError(start, "opening bracket not found")

        pos = start + 2
        key, pos = self._read_string(data, pos, start)
        pos = self._expect(data, pos, SEPARATOR, start)
        value_name, pos = self._read_string(data, pos, start)
        pos = self._expect(data, pos, SEPARATOR, start)
        value_type, pos = self._read_uint32(data, pos, start)
        pos = self._expect(data, pos, SEPARATOR, start)
        size, pos = self._read_uint32(data, pos, start)
        pos = self._expect(data, pos, SEPARATOR, start)

        if pos + size > len(data):
            raise RecordParseError(start, f"data of {size} bytes runs past end of buffer")
        raw = data[pos:pos + size]
        pos = self._expect(data, pos + size, CLOSE_BRACKET, start)

        # Padding and key-only records carry no usable value
        if not key or not value_name:
            return None, pos

        entry = RegistryPolicyEntry(
            key=key,
            value_name=value_name,
            value_type=value_type,
            value_data=self._decode_value(raw, value_type),
            scope=scope,
        )
        return entry, pos

    @staticmethod
    def _read_string(data, pos, start):
        end = pos
        while end + 2 <= len(data):
            if data[end:end + 2] == TERMINATOR:
                return data[pos:end].decode("utf-16-le", errors="replace"), end + 2
            end += 2
        raise RecordParseError(start, "unterminated string")

    @staticmethod
    def _read_uint32(data, pos, start):
        if pos + 4 > len(data):
            raise RecordParseError(start, "integer field runs past end of buffer")
        return struct.unpack_from("<I", data, pos)[0], pos + 4

    @staticmethod
    def _expect(data, pos, marker, start):
        if data[pos:pos + len(marker)] != marker:
            raise RecordParseError(start, f"expected {marker.decode('utf-16-le')!r} at offset {pos}")
        return pos + len(marker)

    @staticmethod
    def _decode_value(raw, value_type):
        if value_type == RegistryValueType.REG_SZ:
            usable = raw[:len(raw) - len(raw) % 2]
            return usable.decode("utf-16-le", errors="replace").rstrip("\x00")
        if value_type == RegistryValueType.REG_DWORD:
            return int.from_bytes(raw[:4], "little")
        # REG_MULTI_SZ, REG_BINARY and the rest stay opaque
        return bytes(raw)

    def locate_policy_files(self, gpo_path):
        """
        Find Machine and User registry.pol files of a GPO directory

        Directory and file names are matched case-insensitively since
        sysvol copies use both Registry.pol and registry.pol.

        Returns:
            Dictionary of PolicyScope -> Path, or None if absent
        """
        gpo_dir = Path(gpo_path)
        found = {}
        for scope, dir_name in self.scope_dirs.items():
            scope_dir = find_child(gpo_dir, dir_name)
            found[scope] = find_child(scope_dir, REGISTRY_POL_NAME) if scope_dir else None
        return found

    def read_gpo(self, gpo_path):
        """
        Parse both registry.pol files of a GPO directory

        Returns:
            Tuple (entries, counts): Machine entries followed by User
            entries, and a dictionary of PolicyScope -> entry count
        """
        entries = []
        counts = {}
        for scope, pol_path in self.locate_policy_files(gpo_path).items():
            if pol_path is None:
                logger.info(f"No {scope.value} registry.pol under {gpo_path}")
                counts[scope] = 0
                continue
            scope_entries = self.parse(pol_path, scope)
            counts[scope] = len(scope_entries)
            entries.extend(scope_entries)
        return entries, counts

