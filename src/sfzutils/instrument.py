# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Instrument - the ordered collection of Regions parsed from one SFZ file.
"""

from pathlib import Path

from .definition import validate_region


class Instrument:
    """
    Owns every Region produced while parsing one file, in file order.
    """

    def __init__(self, source=None):
        """
        Initializes the Instrument.

        Args:
            source: Path of the file the regions came from, if any.
        """
        self.source = source
        self.regions = []

    @property
    def base_dir(self):
        """Directory relative sample paths are resolved against."""
        if self.source is None:
            return None
        return Path(self.source).parent

    def add_region(self, region):
        self.regions.append(region)
        return region

    def region_by_id(self, region_id):
        for region in self.regions:
            if region.id == region_id:
                return region
        raise KeyError(f"no region with id {region_id}")

    def choked_by(self, region):
        """
        Returns the regions silenced when `region` sounds.

        A region with group -1 silences nothing. A region whose off_by equals its own
        group is included in its own result.
        """
        if region.group == -1:
            return []
        return [other for other in self.regions if other.off_by == region.group]

    def reset_performance_state(self):
        """Rewinds every region's sequence counter and switch-key latch."""
        for region in self.regions:
            region.tracker.reset()

    def validate(self):
        """
        Checks every region.

        Returns:
            A list of "region <id>: <problem>" strings.
        """
        problems = []
        for region in self.regions:
            for problem in validate_region(region):
                problems.append(f"region {region.id}: {problem}")
        return problems

    def to_dict(self):
        return {
            "source": None if self.source is None else str(self.source),
            "regions": [region.to_dict() for region in self.regions],
        }

    def __len__(self):
        return len(self.regions)

    def __iter__(self):
        return iter(self.regions)

    def __getitem__(self, index):
        return self.regions[index]

    def __eq__(self, other):
        if not isinstance(other, Instrument):
            return NotImplemented
        return self.regions == other.regions

    __hash__ = None

    def __repr__(self):
        return f"Instrument(source={self.source!r}, regions={len(self.regions)})"
