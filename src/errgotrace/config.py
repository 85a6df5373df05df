from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass(frozen=True)
class Config:
    """Read-only settings shared by every file of one invocation."""

    include: re.Pattern[str]
    exclude: re.Pattern[str] | None = None
    exported_only: bool = False
    write: bool = False

    @classmethod
    def from_flags(
        cls,
        *,
        filter: str = ".",
        exclude: str = "",
        exported_only: bool = False,
        write: bool = False,
    ) -> "Config":
        try:
            include_re = re.compile(filter)
        except re.error as e:
            raise ConfigurationError(f"error in filter regex ({e})") from e

        exclude_re = None
        if exclude:
            try:
                exclude_re = re.compile(exclude)
            except re.error as e:
                raise ConfigurationError(f"error in exclude regex ({e})") from e

        return cls(include=include_re, exclude=exclude_re, exported_only=exported_only, write=write)

    def selects(self, qualified_name: str) -> bool:
        """Return True if a qualified function name passes filter and exclude."""
        if not self.include.search(qualified_name):
            return False
        # exclude takes precedence over filter
        if self.exclude is not None and self.exclude.search(qualified_name):
            return False
        return True
