"""Tests for the command-line interface."""

from typer.testing import CliRunner

from creative_engine.cli import app

runner = CliRunner()


def test_version() -> None:
    """The version flag prints and exits."""
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "Creative Engine v" in result.stdout


def test_subtitles_preview() -> None:
    """Captions are printed as SRT."""
    result = runner.invoke(
        app, ["subtitles", "preview", "One two three four five six seven", "-d", "3.5"]
    )

    assert result.exit_code == 0
    assert "00:00:00,000 -->" in result.stdout
    assert "One two three four five" in result.stdout


def test_subtitles_preview_empty_text() -> None:
    result = runner.invoke(app, ["subtitles", "preview", "   ", "-d", "2"])

    assert result.exit_code == 1
