"""Domain value describing one changed file in a working tree."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_SCORED_CODE = re.compile(r"^([RC])\d*$")


class FileStatus(str, Enum):
    """Git status of a changed file as reported by the producer."""

    ADDED = "Added"
    MODIFIED = "Modified"
    DELETED = "Deleted"
    RENAMED = "Renamed"
    COPIED = "Copied"
    UNMERGED = "Unmerged"
    UNTRACKED = "Untracked"

    @classmethod
    def from_code(cls, value: str) -> "FileStatus":
        """Map a status name or raw ``git`` status code onto a member.

        Names match case-insensitively. Single letter codes follow
        ``git status --porcelain``; rename and copy codes may carry a
        similarity score (``R100``, ``C075``). Anything else, such as the
        ``T`` type change code, counts as a modification.
        """

        text = value.strip()
        for member in cls:
            if member.value.lower() == text.lower():
                return member

        code = text.upper()
        scored = _SCORED_CODE.match(code)
        if scored:
            return cls.RENAMED if scored.group(1) == "R" else cls.COPIED
        return _LETTER_CODES.get(code, cls.MODIFIED)


_LETTER_CODES = {
    "A": FileStatus.ADDED,
    "M": FileStatus.MODIFIED,
    "D": FileStatus.DELETED,
    "U": FileStatus.UNMERGED,
    "?": FileStatus.UNTRACKED,
    "??": FileStatus.UNTRACKED,
}


@dataclass(frozen=True)
class FileEdit:
    """A single file with pending changes in the reporting repository."""

    file_path: str
    status: FileStatus
    is_staged: bool = False


__all__ = ["FileEdit", "FileStatus"]
