"""Tests for reading and writing confcrypt files on disk."""

import stat

import pytest

from confcrypt.config import ConfCryptFile
from confcrypt.exceptions import FormatError, WrongFileActionError
from confcrypt.model import SchemaType


@pytest.fixture
def conf_path(temp_dir):
    return temp_dir / "app.econf"


def test_missing_file_is_empty(conf_path):
    conf = ConfCryptFile(conf_path)
    assert len(conf.state) == 0
    assert not conf_path.exists()


def test_missing_file_must_exist(conf_path):
    with pytest.raises(FileNotFoundError):
        ConfCryptFile(conf_path, must_exist=True)


def test_add_then_read(conf_path, public_key, private_key):
    conf = ConfCryptFile(conf_path)
    conf.add(public_key, "TOKEN", "secret", SchemaType.STRING)

    text = conf_path.read_text()
    assert text.startswith("TOKEN : string\nTOKEN = BEGIN")
    assert "secret" not in text
    assert stat.S_IMODE(conf_path.stat().st_mode) == 0o600

    reloaded = ConfCryptFile(conf_path, must_exist=True)
    assert reloaded.read(private_key) == ["TOKEN : string", "TOKEN = secret"]


@pytest.mark.parametrize("name", ["MY KEY", "a:b", "x=y", ""])
def test_add_invalid_name_leaves_file_loadable(
    conf_path, public_key, private_key, name
):
    conf = ConfCryptFile(conf_path)
    conf.add(public_key, "A", "1", SchemaType.INT)
    before = conf_path.read_text()

    with pytest.raises(FormatError, match="Invalid name"):
        conf.add(public_key, name, "v", SchemaType.STRING)

    assert conf_path.read_text() == before
    assert ConfCryptFile(conf_path, must_exist=True).read(private_key) == [
        "A : int",
        "A = 1",
    ]


def test_read_does_not_write(conf_path, public_key, private_key):
    conf = ConfCryptFile(conf_path)
    conf.add(public_key, "A", "1", SchemaType.INT)
    before = conf_path.read_text()

    conf.read(private_key)

    assert conf_path.read_text() == before


def test_edit_keeps_other_lines_identical(conf_path, public_key, private_key):
    """Only the edited line changes, so diffs stay small."""
    conf_path.write_text("# header\n")
    conf = ConfCryptFile(conf_path)
    conf.add(public_key, "A", "1", SchemaType.INT)
    conf.add(public_key, "B", "2", SchemaType.INT)
    before = conf_path.read_text().splitlines()

    conf.edit(public_key, "A", "10", SchemaType.INT)
    after = conf_path.read_text().splitlines()

    changed = [i for i, (old, new) in enumerate(zip(before, after)) if old != new]
    assert len(before) == len(after)
    assert changed == [2]
    assert conf.read(private_key)[2] == "A = 10"


def test_delete(conf_path, public_key):
    conf = ConfCryptFile(conf_path)
    conf.add(public_key, "A", "1", SchemaType.INT)
    conf.add(public_key, "B", "2", SchemaType.INT)

    conf.delete("A")

    lines = conf_path.read_text().splitlines()
    assert lines[0] == "B : int"
    assert len(lines) == 2


def test_failed_add_leaves_file_untouched(conf_path, public_key):
    conf = ConfCryptFile(conf_path)
    conf.add(public_key, "A", "1", SchemaType.INT)
    before = conf_path.read_text()

    with pytest.raises(WrongFileActionError):
        conf.add(public_key, "A", "2", SchemaType.INT)

    assert conf_path.read_text() == before


def test_encrypt_whole(conf_path, public_key, private_key):
    conf_path.write_text("# bootstrap\nHOST : string\nHOST = db.local\n")
    conf = ConfCryptFile(conf_path)

    assert conf.encrypt_whole(public_key) == 1
    assert "db.local" not in conf_path.read_text()
    assert conf.encrypt_whole(public_key) == 0
    assert conf.read(private_key)[2] == "HOST = db.local"


def test_validate(conf_path, public_key, private_key):
    conf = ConfCryptFile(conf_path)
    conf.add(public_key, "PORT", "abc", SchemaType.INT)

    report = conf.validate(private_key)

    assert not report.is_valid
    assert report.issues[0].name == "PORT"


def test_unparseable_file(conf_path):
    conf_path.write_text("not a config line\n")
    with pytest.raises(FormatError):
        ConfCryptFile(conf_path)
