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
Filesystem helpers shared by the reader, the indexer and the planner
"""

from pathlib import Path


def find_child(directory, name):
    """
    Return directory/name, matching the name case-insensitively

    Sysvol and PolicyDefinitions copies made from Windows hosts mix
    Registry.pol/registry.pol and en-US/en-us freely.
    """
    if directory is None:
        return None
    directory = Path(directory)
    if not directory.is_dir():
        return None

    exact = directory / name
    if exact.exists():
        return exact

    lowered = name.lower()
    for child in sorted(directory.iterdir()):
        if child.name.lower() == lowered:
            return child
    return None
