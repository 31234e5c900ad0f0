"""Summary: Tests for the command-line interface.

Importance: Ensures CLI commands wire into the same services as the API.
Alternatives: Test the CLI manually.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from inboxagent.cli import build_parser, run_cli

PROJECT_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def project_cwd(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(PROJECT_ROOT)
    for name in ("INBOXAGENT_AI_PROVIDER", "INBOXAGENT_SEED_PATH", "INBOXAGENT_PROCESS_DELAY_SECONDS"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_list_emails_prints_seeded_inbox(project_cwd: None, capsys: pytest.CaptureFixture[str]) -> None:
    """Summary: Verify the CLI lists the seeded inbox.

    Importance: Confirms configuration and seeding work from the command line.
    Alternatives: Only test through the API.
    """

    run_cli(["list-emails", "--limit", "3"])
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 3
    assert "Bug Report: Critical Issue in Production" in lines[0]
    assert lines[0].startswith("*9: [-]")


def test_list_prompts(project_cwd: None, capsys: pytest.CaptureFixture[str]) -> None:
    run_cli(["list-prompts"])
    out = capsys.readouterr().out
    assert "categorization: Categorization Prompt [categorization]" in out
    assert "(edited)" not in out


def test_unknown_email_exits_with_error(project_cwd: None, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli(["show-email", "999"])
    assert excinfo.value.code == 1
    assert "Email 999 not found" in capsys.readouterr().err


def test_misconfigured_provider_exits_with_error(
    project_cwd: None, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Summary: Verify provider misconfiguration is reported, not raised.

    Importance: A missing API key should read as a CLI error, not a traceback.
    Alternatives: Let the exception propagate.
    """

    monkeypatch.setenv("INBOXAGENT_AI_PROVIDER", "gemini")
    monkeypatch.setenv("GEMINI_API_KEY", "")
    for command in (["list-prompts"], ["serve"]):
        with pytest.raises(SystemExit) as excinfo:
            run_cli(command)
        assert excinfo.value.code == 1
        assert "GEMINI_API_KEY is required" in capsys.readouterr().err
