import json
from pathlib import Path

from pypdf import PdfReader
from reportlab.pdfgen import canvas
from typer.testing import CliRunner

from mark2pdf.cli import _overrides, app

runner = CliRunner()


def make_pdf(path: Path, pages: int = 1) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    pdf = canvas.Canvas(str(path))
    for number in range(pages):
        pdf.drawString(72, 720, f"page {number + 1}")
        pdf.showPage()
    pdf.save()
    return path


def test_overrides_only_include_given_flags() -> None:
    assert _overrides() == {}
    assert _overrides(input_path="docs", concurrent=None, timeout=100) == {
        "input": {"path": "docs"},
        "options": {"timeout": 100},
    }
    assert _overrides(extensions=[".html"]) == {"input": {"extensions": [".html"]}}


def test_init_writes_project_config(tmp_path: Path) -> None:
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    data = json.loads((tmp_path / "mark2pdf.config.json").read_text(encoding="utf-8"))
    assert data["input"]["path"] == "./public/md"
    assert data["output"]["createDirIfNotExist"] is True

    assert runner.invoke(app, ["init"]).exit_code == 1
    assert runner.invoke(app, ["init", "--force"]).exit_code == 0


def test_init_global_writes_user_config(tmp_path: Path) -> None:
    result = runner.invoke(app, ["init", "--global"])
    assert result.exit_code == 0
    assert (tmp_path / "home" / ".mark2pdf" / "config.json").is_file()


def test_config_errors_exit_with_one(tmp_path: Path) -> None:
    assert runner.invoke(app, ["convert", "-c", "missing.json"]).exit_code == 1
    assert runner.invoke(app, ["convert", "--concurrent", "11"]).exit_code == 1
    assert runner.invoke(app, ["merge", "-i", "bad|path"]).exit_code == 1


def test_convert_command_renders_markdown(tmp_path: Path) -> None:
    source = tmp_path / "docs" / "guide.md"
    source.parent.mkdir()
    source.write_text("# Guide\n\nHello.", encoding="utf-8")
    (tmp_path / "docs" / "empty.md").write_text("", encoding="utf-8")

    result = runner.invoke(app, ["convert", "-i", "docs", "-o", "pdf", "--format", "Letter"])

    assert result.exit_code == 0
    assert (tmp_path / "pdf" / "guide.pdf").read_bytes().startswith(b"%PDF")
    assert "File content is empty" in result.output


def test_html_command_uses_html_extensions(tmp_path: Path) -> None:
    page = tmp_path / "site" / "index.htm"
    page.parent.mkdir()
    page.write_text("<h1>Index</h1><p>Body</p>", encoding="utf-8")
    (tmp_path / "site" / "notes.md").write_text("# ignored", encoding="utf-8")

    result = runner.invoke(app, ["html", "-i", "site", "-o", "pdf"])

    assert result.exit_code == 0
    assert (tmp_path / "pdf" / "index.pdf").exists()
    assert not (tmp_path / "pdf" / "notes.pdf").exists()


def test_merge_command(tmp_path: Path) -> None:
    make_pdf(tmp_path / "in" / "chapter" / "01.pdf")
    make_pdf(tmp_path / "in" / "chapter" / "02.pdf", pages=2)

    result = runner.invoke(app, ["merge", "-i", "in", "-o", "out"])

    assert result.exit_code == 0
    assert len(PdfReader(tmp_path / "out" / "chapter.pdf").pages) == 3


def test_config_validate_command(tmp_path: Path) -> None:
    assert runner.invoke(app, ["config", "validate"]).exit_code == 1

    (tmp_path / "mark2pdf.config.json").write_text(json.dumps({"options": {"cssPath": "a.css"}}), encoding="utf-8")
    result = runner.invoke(app, ["config", "validate"])
    assert result.exit_code == 0
    assert "Valid" in result.output

    legacy = tmp_path / "legacy.json"
    legacy.write_text(json.dumps({"options": {"concurrent": 20}}), encoding="utf-8")
    result = runner.invoke(app, ["config", "validate", str(legacy)])
    assert result.exit_code == 1
    assert "options.concurrent" in result.output


def test_config_migrate_command(tmp_path: Path) -> None:
    path = tmp_path / "mark2pdf.config.json"
    path.write_text(json.dumps({"options": {"timeout": 500, "pdfOptions": {}}}), encoding="utf-8")

    result = runner.invoke(app, ["config", "migrate", str(path), "--no-backup"])

    assert result.exit_code == 0
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["options"]["timeout"] == 500
    assert "pdfOptions" not in data["options"]
    assert not list(tmp_path.glob("*.backup.*"))
    assert "Already up to date" in runner.invoke(app, ["config", "migrate", str(path)]).output


def test_config_migrate_directory(tmp_path: Path) -> None:
    (tmp_path / "config.json").write_text(json.dumps({"features": {"cache": False}, "old": 1}), encoding="utf-8")

    result = runner.invoke(app, ["config", "migrate"])

    assert result.exit_code == 0
    assert len(list(tmp_path.glob("config.json.backup.*"))) == 1
    assert json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))["features"]["cache"] is False
    assert runner.invoke(app, ["config", "migrate", "missing.json"]).exit_code == 1
