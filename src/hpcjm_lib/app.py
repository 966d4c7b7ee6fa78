# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class AppInfo:
    """
    Information about an application executed by a job.
    """

    # Name of the application.
    name: str = ""
    # Name of the binary starting the application.
    bin_name: str = ""
    # Path to the binary starting the application.
    bin_path: Path | None = None
    # Arguments of the binary.
    bin_args: list[str] = field(default_factory=list)

    def command(self) -> list[str]:
        """
        Return the invocation of the application as a list of strings.

        Returns an empty list if the binary is not set.
        """
        if not self.bin_path:
            return []
        return [str(self.bin_path), *self.bin_args]
