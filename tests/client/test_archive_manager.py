"""
Tests for the FTP archive connection
"""

import ftplib

import pytest

from archive_sync.client.exceptions import ArchiveError
from archive_sync.client.managers import ArchiveManager, parse_archive_locator


@pytest.mark.parametrize("locator,expected", [
    ("ftp://archive.routeviews.org/bgpdata", ("archive.routeviews.org", 21, "/bgpdata")),
    ("ftp://archive.routeviews.org:2121/bgpdata/", ("archive.routeviews.org", 2121, "/bgpdata")),
    ("archive.routeviews.org/route-views4/bgpdata", ("archive.routeviews.org", 21, "/route-views4/bgpdata")),
    ("ftp://archive.routeviews.org", ("archive.routeviews.org", 21, "/")),
])
def test_parse_archive_locator(locator, expected):
    assert parse_archive_locator(locator) == expected


@pytest.mark.parametrize("locator", ["", "ftp:///bgpdata"])
def test_parse_archive_locator_requires_host(locator):
    with pytest.raises(ValueError):
        parse_archive_locator(locator)


def test_connect_applies_idle_timeout(fake_ftp):
    manager = ArchiveManager("archive.example.org", timeout=42, ftp_factory=lambda: fake_ftp)
    manager.connect()

    assert fake_ftp.connected
    assert fake_ftp.timeout == 42


def test_login_failure(fake_ftp):
    fake_ftp.login_error = ftplib.error_perm("530 Login incorrect")
    manager = ArchiveManager("archive.example.org", ftp_factory=lambda: fake_ftp)

    with pytest.raises(ArchiveError, match="failed to login"):
        manager.connect()
    assert manager.ftp is None


def test_list_directory(archive, fake_ftp):
    fake_ftp.add_dir("/bgpdata/RIBS")
    fake_ftp.add_file("/bgpdata/updates.1", b"X")

    entries = archive.list_directory("/bgpdata")

    assert [(e.name, e.path, e.is_dir, e.is_file) for e in entries] == [
        ("RIBS", "/bgpdata/RIBS", True, False),
        ("updates.1", "/bgpdata/updates.1", False, True),
    ]


def test_list_directory_falls_back_to_list(archive, fake_ftp):
    fake_ftp.mlsd_supported = False
    fake_ftp.add_dir("/bgpdata/UPDATES")
    fake_ftp.add_file("/bgpdata/updates.1", b"X")

    entries = archive.list_directory("/bgpdata")

    assert not archive.use_mlsd
    assert [(e.name, e.is_dir, e.is_file) for e in entries] == [
        ("UPDATES", True, False),
        ("updates.1", False, True),
    ]


def test_list_missing_directory(archive):
    with pytest.raises(ArchiveError, match="failed to list"):
        archive.list_directory("/nowhere")


def test_retrieve(archive, fake_ftp):
    fake_ftp.add_file("/a/updates.1", b"content")

    assert archive.retrieve("a/updates.1") == b"content"
    assert fake_ftp.retrieved == ["/a/updates.1"]


def test_retrieve_failure(archive, fake_ftp):
    fake_ftp.add_file("/a/updates.1", b"content")
    fake_ftp.fail_retrieve["/a/updates.1"] = EOFError()

    with pytest.raises(ArchiveError, match="failed to RETR"):
        archive.retrieve("a/updates.1")


def test_requires_connection():
    manager = ArchiveManager("archive.example.org")
    with pytest.raises(ArchiveError):
        manager.retrieve("a/updates.1")


def test_quit(archive, fake_ftp):
    archive.quit()

    assert not fake_ftp.connected
    assert archive.ftp is None
    archive.quit()
