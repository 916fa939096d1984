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
gpoadmx - Match GPO registry.pol settings against ADMX templates and
plan their import into a remote configuration
"""

from .admx_catalog import AdmxCatalogIndexer
from .config import ImportOptions
from .errors import (
    AdmxParseError,
    FormatError,
    GpoAdmxError,
    MissingArtifactWarning,
    PathNotFoundError,
    RecordParseError,
    ScanCancelledError,
)
from .importer import GpoAdmxImporter, ImportReport
from .matcher import PolicyMatcher
from .models import (
    AdmxMatch,
    ImportPlanItem,
    MatchedPolicy,
    MatchRule,
    PlanDecision,
    PolicyDefinition,
    PolicyScope,
    RegistryPolicyEntry,
    RegistryValueType,
)
from .planner import ImportPlanner
from .polreader import PolicyFileReader

__version__ = "0.1.0"
