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
Error taxonomy for registry.pol decoding, ADMX indexing and import planning
"""


class GpoAdmxError(Exception):
    """Base class for all gpoadmx failures"""


class FormatError(GpoAdmxError):
    """registry.pol buffer is too short or lacks the PReg signature"""


class RecordParseError(GpoAdmxError):
    """A single bracketed record inside a registry.pol buffer is malformed"""

    def __init__(self, offset, reason):
        super().__init__(f"record at offset {offset}: {reason}")
        self.offset = offset
        self.reason = reason


class PathNotFoundError(GpoAdmxError):
    """Policy definitions root does not exist"""

    def __init__(self, path):
        super().__init__(f"Policy definitions path does not exist: {path}")
        self.path = path


class AdmxParseError(GpoAdmxError):
    """A single ADMX file could not be read or parsed"""

    def __init__(self, path, reason):
        super().__init__(f"ADMX parse error: {path}: {reason}")
        self.path = path
        self.reason = reason


class ScanCancelledError(GpoAdmxError):
    """ADMX catalog scan was cancelled through its cancel event"""


class MissingArtifactWarning(UserWarning):
    """Companion ADML file is missing; the ADMX is still imported"""

    def __init__(self, admx_path, adml_path):
        super().__init__(f"ADML file not found for {admx_path}: {adml_path}")
        self.admx_path = admx_path
        self.adml_path = adml_path
