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

import os
from dataclasses import dataclass, field


LOGGER_NAME = "gpoadmx"
GETTEXT_DOMAIN = "gpo-admx-import"
LOCALE_DIR = "/usr/share/locale"

DEFAULT_POLICY_DEFINITIONS_PATH = "/usr/share/PolicyDefinitions"
DEFAULT_SYSVOL_PATH = "/var/lib/freeipa/sysvol"
DEFAULT_LANGUAGE = "en-US"

MACHINE_DIR = "Machine"
USER_DIR = "User"
REGISTRY_POL_NAME = "Registry.pol"

# Templates the configuration service rejects on import
PROBLEMATIC_ADMX = frozenset({
    "inetres.admx",
    "microsoftedge.admx",
    "windowsstore.admx",
})


def get_domain_sysvol_path(sysvol, domain):
    return os.path.join(sysvol, domain)

def get_policies_path(sysvol, domain):
    return os.path.join(get_domain_sysvol_path(sysvol, domain), "Policies")

def get_policy_path(sysvol, domain, guid):
    if not guid.startswith("{"):
        guid = "{%s}" % guid
    return os.path.join(get_policies_path(sysvol, domain), guid.upper())


@dataclass
class ImportOptions:
    """Per-run settings for one GPO import."""

    policy_definitions_path: str = DEFAULT_POLICY_DEFINITIONS_PATH
    language: str = DEFAULT_LANGUAGE
    skip_problematic: bool = False
    skip_list: frozenset = field(default_factory=lambda: PROBLEMATIC_ADMX)
    what_if: bool = False
    max_workers: int = 1
