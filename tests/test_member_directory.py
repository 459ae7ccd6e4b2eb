from __future__ import annotations

from pathlib import Path

from lounge_app.data_sources.member_directory import MemberDirectoryClient
from lounge_app.models import Member


def test_header_columns_are_detected(tmp_path: Path) -> None:
    path = tmp_path / "membership.csv"
    path.write_text(
        "Email,Student Number,Phone,Student Name\n"
        "a@x,1001,555,Ann Lee\n"
        "b@x,1002,556,Bob Park\n"
        "c@x,,557,No Id\n",
        encoding="utf-8",
    )
    directory = MemberDirectoryClient(path)
    directory.load()

    assert directory.get_member("1001").name == "Ann Lee"
    assert [m.identity for m in directory.search("park")] == ["1002"]
    assert directory.get_member("") is None
    assert directory.next_member_id() == "3"


def test_headerless_file_uses_default_columns(tmp_path: Path) -> None:
    path = tmp_path / "membership.csv"
    path.write_text("2024-01-01,x,Ann Lee,S1,extra\nshort,row\n", encoding="utf-8")
    directory = MemberDirectoryClient(path)
    directory.load()

    assert [(m.name, m.identity) for m in directory.all_members()] == [("Ann Lee", "S1")]
    assert directory.search("s1")[0].name == "Ann Lee"
    assert directory.search("   ") == []


def test_missing_file_is_empty_and_enroll_creates_it(tmp_path: Path) -> None:
    path = tmp_path / "membership.csv"
    directory = MemberDirectoryClient(path)
    directory.load()
    assert directory.all_members() == []

    directory.enroll(Member(name="Cal Diaz", identity="LOUNGE-1"))

    assert path.read_text(encoding="utf-8").splitlines() == [",,Cal Diaz,LOUNGE-1"]
    reloaded = MemberDirectoryClient(path)
    reloaded.load()
    assert reloaded.get_member("LOUNGE-1").name == "Cal Diaz"


def test_enroll_respects_detected_header_columns(tmp_path: Path) -> None:
    path = tmp_path / "membership.csv"
    path.write_text("ID,Name\nS1,Ann Lee\n", encoding="utf-8")
    directory = MemberDirectoryClient(path)
    directory.load()

    directory.enroll(Member(name="Bob Park", identity="S2"))

    assert path.read_text(encoding="utf-8").splitlines() == ["ID,Name", "S1,Ann Lee", "S2,Bob Park"]
