"""Tests for the sdklint command line (analyze and rules)."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sdklint.main import app

WIDE = {"COLUMNS": "200"}

UPLOADER = b"""package com.example;

import com.azure.storage.blob.BlobClient;
import java.io.InputStream;

public class Uploader {
    public void store(BlobClient client, InputStream data) {
        client.upload(data);
    }
}
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    source = tmp_path / "src" / "main" / "java" / "com" / "example"
    source.mkdir(parents=True)
    (source / "Uploader.java").write_bytes(UPLOADER)
    return tmp_path


def test_analyze_plain_lists_findings(runner, project):
    result = runner.invoke(app, ["analyze", str(project), "--plain"], env=WIDE)
    assert result.exit_code == 0
    assert "Uploader.java:8:9: WARNING [upload-without-length]" in result.output


def test_analyze_single_file(runner, project):
    target = project / "src" / "main" / "java" / "com" / "example" / "Uploader.java"
    result = runner.invoke(app, ["analyze", str(target), "--plain"], env=WIDE)
    assert result.exit_code == 0
    assert "[upload-without-length]" in result.output


def test_analyze_tables(runner, project):
    result = runner.invoke(app, ["analyze", str(project)], env=WIDE)
    assert result.exit_code == 0
    assert "upload-without-length" in result.output
    assert "Files Summary" in result.output
    assert "1 finding" in result.output


def test_analyze_selected_rule_only(runner, project):
    result = runner.invoke(app, ["analyze", str(project), "--plain", "-r", "discouraged-client"], env=WIDE)
    assert result.exit_code == 0
    assert "No findings." in result.output


def test_analyze_fails_when_no_rules_enabled(runner, project, tmp_path):
    config = tmp_path / "broken.json"
    config.write_text("{", encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(project), "--config", str(config)], env=WIDE)
    assert result.exit_code == 1
    assert "No rules are enabled" in result.output


def test_analyze_with_config_override(runner, project, tmp_path):
    config = tmp_path / "sdklint.json"
    config.write_text(
        json.dumps({"rules": {"upload-without-length": {"methods_to_check": ["uploadFromFile"]}}}),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["analyze", str(project), "--plain", "-c", str(config)], env=WIDE)
    assert result.exit_code == 0
    assert "No findings." in result.output


def test_analyze_rejects_non_java_file(runner, tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello", encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(notes)])
    assert result.exit_code != 0


def test_invalid_log_level(runner, project):
    result = runner.invoke(app, ["analyze", str(project), "--log-level", "LOUD"])
    assert result.exit_code != 0


def test_rules_lists_every_rule(runner):
    result = runner.invoke(app, ["rules"], env=WIDE)
    assert result.exit_code == 0
    assert "closeable-client-not-closed" in result.output
    assert "discouraged-client" in result.output
    assert "ENABLED" in result.output


def test_rules_fails_when_all_disabled(runner, tmp_path):
    config = tmp_path / "missing.json"
    result = runner.invoke(app, ["rules", "--config", str(config)], env=WIDE)
    assert result.exit_code == 1
    assert "DISABLED" in result.output
