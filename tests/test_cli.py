"""
Tests for the CLI Module.
=========================

Runs the Typer commands in-process without API credentials, so every
command exercises its degraded (lexical-only, no-analysis) path.
"""

import pytest
from typer.testing import CliRunner


@pytest.fixture
def runner(monkeypatch, temp_dir) -> CliRunner:
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.setenv("CACHE__PERSIST", "false")
    monkeypatch.setenv("VECTOR_STORE__PERSIST_DIRECTORY", str(temp_dir / "index"))
    return CliRunner()


@pytest.fixture
def catalog_file(temp_dir, sample_catalog_text):
    path = temp_dir / "catalog.txt"
    path.write_text(sample_catalog_text, encoding="utf-8")
    return path


class TestCLI:
    """Tests for the courseadvisor commands."""

    def test_info(self, runner):
        """Test that info prints configuration."""
        from course_advisor.cli.main import app

        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "Course Advisor" in result.output
        assert "Vector backend" in result.output

    def test_info_shows_selected_config_file(self, runner, monkeypatch, temp_dir):
        """Test that info names the YAML file chosen by COURSE_ADVISOR_CONFIG."""
        from course_advisor.cli.main import app

        (temp_dir / "alt.yaml").write_text("retrieval:\n  top_k: 7\n", encoding="utf-8")
        monkeypatch.chdir(temp_dir)
        monkeypatch.setenv("COURSE_ADVISOR_CONFIG", "alt.yaml")

        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "Config: alt.yaml" in result.output
        assert any("Top-k" in line and "7" in line for line in result.output.splitlines())

    def test_query_falls_back_to_documents(self, runner, catalog_file):
        """Test a query answered from a --doc file by keyword search."""
        from course_advisor.cli.main import app

        result = runner.invoke(
            app, ["query", "math courses", "--doc", str(catalog_file), "--backend", "memory"]
        )

        assert result.exit_code == 0
        assert "lexical" in result.output
        assert "Algebra" in result.output

    def test_query_without_documents(self, runner):
        """Test the no-information message."""
        from course_advisor.cli.main import app

        result = runner.invoke(app, ["query", "math courses", "--backend", "memory"])

        assert result.exit_code == 0
        assert "couldn't find any specific information" in result.output

    def test_ingest_without_credentials(self, runner, catalog_file):
        """Test that ingestion without a provider stores nothing but succeeds."""
        from course_advisor.cli.main import app

        result = runner.invoke(
            app, ["ingest", str(catalog_file), "--tag", "catalog", "--backend", "memory"]
        )

        assert result.exit_code == 0
        assert "No vectors stored" in result.output

    def test_analyze_without_credentials(self, runner, temp_dir):
        """Test that analysis reports the extraction failure and still prints gaps."""
        from course_advisor.cli.main import app

        transcript = temp_dir / "transcript.txt"
        transcript.write_text("Algebra I  A\nBiology  B", encoding="utf-8")

        result = runner.invoke(app, ["analyze", str(transcript), "--no-briefing"])

        assert result.exit_code == 0
        assert "Could not extract courses" in result.output
        assert "Graduation Requirements" in result.output

    def test_missing_file(self, runner, temp_dir):
        """Test that a missing input file exits with an error."""
        from course_advisor.cli.main import app

        result = runner.invoke(app, ["ingest", str(temp_dir / "nope.txt")])

        assert result.exit_code == 1
        assert "File not found" in result.output
