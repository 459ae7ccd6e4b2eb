from __future__ import annotations

import csv
from pathlib import Path

from lounge_app.errors import MemberDirectoryError
from lounge_app.models import Member


NAME_HEADERS = {"student name", "name"}
IDENTITY_HEADERS = {"student number", "id", "student id"}
DEFAULT_NAME_COLUMN = 2
DEFAULT_IDENTITY_COLUMN = 3


class MemberDirectoryClient:
    """Read-mostly view over the membership CSV.

    The name and identity columns are located by header text; files without a
    recognisable header use the default columns and have no header row.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._members: dict[str, Member] = {}
        self.name_column = DEFAULT_NAME_COLUMN
        self.identity_column = DEFAULT_IDENTITY_COLUMN

    def load(self) -> None:
        self._members = {}
        self.name_column = DEFAULT_NAME_COLUMN
        self.identity_column = DEFAULT_IDENTITY_COLUMN
        try:
            with self.path.open(newline="", encoding="utf-8") as handle:
                rows = list(csv.reader(handle))
        except (OSError, csv.Error, UnicodeDecodeError):
            return
        if not rows:
            return

        name_column = identity_column = None
        for index, cell in enumerate(rows[0]):
            key = cell.strip().lower()
            if key in NAME_HEADERS:
                name_column = index
            if key in IDENTITY_HEADERS:
                identity_column = index

        start = 0
        if name_column is not None and identity_column is not None:
            self.name_column, self.identity_column = name_column, identity_column
            start = 1

        for row in rows[start:]:
            if self.name_column >= len(row) or self.identity_column >= len(row):
                continue
            name = row[self.name_column].strip()
            identity = row[self.identity_column].strip()
            if not name or not identity:
                continue
            self._members.setdefault(identity, Member(name=name, identity=identity))

    def get_member(self, identity: str) -> Member | None:
        return self._members.get(identity)

    def all_members(self) -> list[Member]:
        return list(self._members.values())

    def search(self, query: str) -> list[Member]:
        needle = query.strip().lower()
        if not needle:
            return []
        return [
            member
            for member in self._members.values()
            if needle in member.name.lower() or needle in member.identity.lower()
        ]

    def next_member_id(self) -> str:
        return str(len(self._members) + 1)

    def enroll(self, member: Member) -> None:
        row = [""] * (max(self.name_column, self.identity_column) + 1)
        row[self.name_column] = member.name
        row[self.identity_column] = member.identity
        try:
            rows: list[list[str]] = []
            if self.path.exists():
                with self.path.open(newline="", encoding="utf-8") as handle:
                    rows = list(csv.reader(handle))
            rows.append(row)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", newline="", encoding="utf-8") as handle:
                csv.writer(handle).writerows(rows)
        except (OSError, csv.Error, UnicodeDecodeError) as exc:
            raise MemberDirectoryError(f"append member {member.identity} to {self.path}: {exc}") from exc
        self._members[member.identity] = member
