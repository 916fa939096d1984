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
Records exchanged between the reader, the catalog indexer, the matcher
and the planner
"""

from dataclasses import dataclass
from enum import Enum, IntEnum


class RegistryValueType(IntEnum):
    REG_NONE = 0
    REG_SZ = 1
    REG_EXPAND_SZ = 2
    REG_BINARY = 3
    REG_DWORD = 4
    REG_DWORD_BIG_ENDIAN = 5
    REG_LINK = 6
    REG_MULTI_SZ = 7
    REG_RESOURCE_LIST = 8
    REG_FULL_RESOURCE_DESCRIPTOR = 9
    REG_RESOURCE_REQUIREMENTS_LIST = 10
    REG_QWORD = 11

    @classmethod
    def name_of(cls, code: int) -> str:
        try:
            return cls(code).name
        except ValueError:
            return f"REG_UNKNOWN({code})"


class PolicyScope(str, Enum):
    MACHINE = "Machine"
    USER = "User"

    @classmethod
    def from_dir_name(cls, name: str | None) -> "PolicyScope | None":
        for scope in cls:
            if name and name.lower() == scope.value.lower():
                return scope
        return None


@dataclass(frozen=True)
class RegistryPolicyEntry:
    """One decoded [key;value;type;size;data] record of a registry.pol file."""

    key: str
    value_name: str
    value_type: int
    value_data: str | int | bytes
    scope: PolicyScope = PolicyScope.MACHINE

    @property
    def type_name(self) -> str:
        return RegistryValueType.name_of(self.value_type)

    @property
    def full_path(self) -> str:
        return f"{self.key}\\{self.value_name}"

    @property
    def rendered_data(self) -> str | int:
        if isinstance(self.value_data, bytes):
            return self.value_data.hex()
        return self.value_data

    @property
    def is_deletion(self) -> bool:
        # **del.<name>, **delvals., **DeleteValues and friends
        return self.value_name.lower().startswith("**del")


@dataclass(frozen=True)
class PolicyDefinition:
    """One <policy> element of an ADMX file."""

    source_file: str
    policy_name: str
    display_name_ref: str = ""
    registry_key: str | None = None
    registry_value_name: str | None = None
    source_path: str = ""
    policy_class: str = ""
    display_name: str | None = None
    element_values: tuple = ()


class MatchRule(str, Enum):
    EXACT_NAME = "exact-name"
    PREFIX_STRIPPED_NAME = "prefix-stripped-name"
    DISPLAY_NAME = "display-name"
    REGISTRY_VALUE = "registry-value"


@dataclass(frozen=True)
class MatchedPolicy:
    policy_name: str
    registry_key: str
    value_name: str
    rule: MatchRule
    scope: PolicyScope = PolicyScope.MACHINE
    display_name: str | None = None
    policy_class: str = ""


@dataclass(frozen=True)
class AdmxMatch:
    file_name: str
    file_path: str
    matched_policies: tuple

    def __post_init__(self):
        if not self.matched_policies:
            raise ValueError(f"AdmxMatch for {self.file_name} has no matched policies")


class PlanDecision(str, Enum):
    INCLUDE = "Include"
    SKIP_PROBLEMATIC = "SkipProblematic"
    SKIP_MISSING_FILE = "SkipMissingFile"


@dataclass(frozen=True)
class ImportPlanItem:
    admx_path: str
    adml_path: str
    sequence: int | None
    decision: PlanDecision
    adml_exists: bool | None = True

    @property
    def file_name(self) -> str:
        return self.admx_path.replace("\\", "/").rsplit("/", 1)[-1]

    @property
    def included(self) -> bool:
        return self.decision is PlanDecision.INCLUDE

    def to_dict(self) -> dict:
        return {
            "admx": self.admx_path,
            "adml": self.adml_path,
            "sequence": self.sequence,
            "decision": self.decision.value,
            "admlExists": self.adml_exists,
        }
