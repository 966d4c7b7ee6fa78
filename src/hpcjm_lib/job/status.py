# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from enum import Enum
from typing import Self


class JobStatus(Enum):
    """
    Normalized status of a job submitted through a job manager.
    """

    UNKNOWN = 0
    PENDING = 1
    QUEUED = 2
    RUNNING = 3
    STOPPED = 4
    DONE = 5

    def __str__(self) -> str:
        """
        Return the uppercase string representation of the enum variant.

        Returns:
            str: The name of the status.
        """
        return self.name

    @classmethod
    def fromStr(cls, s: str) -> Self:
        """
        Convert a string to the corresponding JobStatus enum variant.

        Args:
            s (str): String representation of the status (case-insensitive).

        Returns:
            JobStatus: Corresponding enum variant. Returns UNKNOWN if no match is found.
        """
        try:
            return cls[s.strip().upper()]
        except KeyError:
            return cls.UNKNOWN
