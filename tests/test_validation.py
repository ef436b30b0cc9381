from pathlib import Path

from mark2pdf.validation import (
    is_safe,
    is_valid_format,
    validate_extensions,
    validate_input,
    validate_output,
)


def test_is_valid_format_accepts_plain_paths() -> None:
    assert is_valid_format("./public/md")
    assert is_valid_format("docs/sub-dir_2/file.md")
    assert is_valid_format("/home/user/docs")


def test_is_valid_format_rejects_bad_values() -> None:
    assert not is_valid_format("")
    assert not is_valid_format(42)
    assert not is_valid_format(None)
    assert not is_valid_format("a" * 1025)
    assert not is_valid_format("bad|name")
    assert not is_valid_format("what?")
    assert not is_valid_format("with space")


def test_is_safe_rejects_system_locations() -> None:
    assert not is_safe("/")
    assert not is_safe("/etc")
    assert not is_safe("/etc/passwd")
    assert not is_safe("/Windows/System32")
    assert is_safe("/home/user/docs")


def test_validate_input_does_not_require_existence() -> None:
    assert validate_input("./public/md")
    assert not validate_input("/etc")
    assert not validate_input("in<put")


def test_validate_output_creates_parent(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "out"
    assert validate_output(str(target))
    assert (tmp_path / "a" / "b").is_dir()
    assert not target.exists()


def test_validate_extensions() -> None:
    assert validate_extensions([".md", ".markdown"])
    assert not validate_extensions([])
    assert not validate_extensions(".md")
    assert not validate_extensions(["md"])
    assert not validate_extensions(["."])
    assert not validate_extensions([".m d"])
    assert not validate_extensions([".md", 3])
