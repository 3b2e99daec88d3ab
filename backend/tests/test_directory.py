"""
Client directory import tests.

Tests:
  - parse_directory : CSV and XLSX parsing, merging, row errors
  - GroupMatcher    : exact and fuzzy group label matching
"""

from __future__ import annotations

import io

import openpyxl

from flextime.db.repository import GroupRef
from flextime.services.directory_parser import parse_directory
from flextime.services.group_matcher import GroupMatcher

DIRECTORY_CSV = (
    "Email,Groups\n"
    "Alice@Acme.com,Acme Corporation; Globex\n"
    "bob@example.com,Acme Corporation\n"
    "alice@acme.com,Initech\n"
    "not-an-email,Acme Corporation\n"
    "carol@example.com,\n"
    ",\n"
).encode()


def _xlsx(rows: list[list]) -> io.BytesIO:
    wb = openpyxl.Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf


class TestParseDirectory:
    def test_csv_rows_merged_by_email(self) -> None:
        entries, _ = parse_directory(io.BytesIO(DIRECTORY_CSV), "directory.csv")

        assert [e.email for e in entries] == ["alice@acme.com", "bob@example.com"]
        assert entries[0].group_labels == ("Acme Corporation", "Globex", "Initech")
        assert entries[1].group_labels == ("Acme Corporation",)

    def test_csv_row_errors(self) -> None:
        _, errors = parse_directory(io.BytesIO(DIRECTORY_CSV), "directory.csv")

        assert errors == [
            "Row 5: invalid email 'not-an-email'",
            "Row 6: no group listed for carol@example.com",
        ]

    def test_xlsx_with_title_row(self) -> None:
        """Header detection skips a title row above the real header."""
        buf = _xlsx([
            ["Client Directory", None],
            ["Client Email", "Client Group"],
            ["dana@initech.com", "Initech"],
        ])

        entries, errors = parse_directory(buf, "directory.xlsx")

        assert errors == []
        assert len(entries) == 1
        assert entries[0].email == "dana@initech.com"
        assert entries[0].group_labels == ("Initech",)

    def test_missing_columns(self) -> None:
        entries, errors = parse_directory(io.BytesIO(b"Name,Team\nx,y\n"), "directory.csv")

        assert entries == []
        assert errors == ["Missing required columns: email, groups"]


class TestGroupMatcher:
    groups = [
        GroupRef(id="id-acme", external_id="grp-acme", name="Acme Corporation"),
        GroupRef(id="id-globex", external_id="grp-globex", name="Globex"),
    ]

    def test_exact_external_id(self) -> None:
        assert GroupMatcher(self.groups).match("GRP-ACME").id == "id-acme"

    def test_exact_name_with_extra_whitespace(self) -> None:
        assert GroupMatcher(self.groups).match("  acme   corporation ").id == "id-acme"

    def test_fuzzy_typo(self) -> None:
        assert GroupMatcher(self.groups, threshold=90).match("Acme Corporaton").id == "id-acme"

    def test_unrelated_label_unmatched(self) -> None:
        assert GroupMatcher(self.groups).match("Initech") is None

    def test_result_is_cached(self) -> None:
        matcher = GroupMatcher(self.groups)
        first = matcher.match("Globex")

        matcher.groups.clear()

        assert matcher.match("globex") is first
