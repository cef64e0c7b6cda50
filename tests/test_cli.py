import json

import pytest
from click.testing import CliRunner

from gitstore.app import AppContext
from gitstore.git_commands import RepositoryQueries
from gitstore.git_runner import GitResult
from gitstore.main import cli

from conftest import FakeHistory, sha_for


@pytest.fixture
def fake(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    fake = FakeHistory(250)
    fake.runner.handlers["getTopLevelWorkingDirectory"] = lambda args: GitResult(0, "\n")
    fake.runner.handlers["getStatus"] = lambda args: GitResult(
        0,
        f"# branch.oid {sha_for(0)}\0# branch.head main\0"
        "# branch.upstream origin/main\0# branch.ab +1 -0\0? notes.txt\0",
    )
    return fake


def invoke(fake, tmp_path, *args):
    app = AppContext(queries=RepositoryQueries(fake.runner))
    return CliRunner().invoke(cli, ["--repo-path", str(tmp_path), *args], obj=app)


def test_status_text(fake, tmp_path):
    result = invoke(fake, tmp_path, "status")

    assert result.exit_code == 0, result.output
    assert "On branch main" in result.output
    assert "Upstream origin/main (ahead 1, behind 0)" in result.output
    assert "?? notes.txt" in result.output


def test_status_json(fake, tmp_path):
    result = invoke(fake, tmp_path, "status", "--json")

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["tip"]["kind"] == "valid"
    assert data["tip"]["branch"]["name"] == "main"
    assert data["ahead_behind"] == {"ahead": 1, "behind": 0}
    assert data["entries"] == [{"path": "notes.txt", "status_code": "??", "old_path": None}]


def test_log_loads_requested_number_of_commits(fake, tmp_path):
    result = invoke(fake, tmp_path, "log", "--max-count", "150", "--format", "json")

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["total_count"] == 250
    assert len(data["commits"]) == 150
    assert data["commits"][0]["sha"] == sha_for(0)
    assert fake.log_limits() == [100, 100]


def test_log_text(fake, tmp_path):
    result = invoke(fake, tmp_path, "log", "-n", "3")

    assert result.exit_code == 0, result.output
    assert "3 of 250 commits" in result.output
    assert "commit 2" in result.output


def test_count(fake, tmp_path):
    result = invoke(fake, tmp_path, "count")

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "250"


def test_toplevel_outside_repository(fake, tmp_path):
    fake.runner.handlers["getTopLevelWorkingDirectory"] = lambda args: GitResult(128, "", "fatal")

    result = invoke(fake, tmp_path, "toplevel")

    assert result.exit_code != 0
    assert "is not inside a git repository" in result.output


def test_git_failure_is_reported(fake, tmp_path):
    fake.runner.handlers["getStatus"] = lambda args: GitResult(1, "", "fatal: index file corrupt")

    result = invoke(fake, tmp_path, "status")

    assert result.exit_code == 1
    assert "index file corrupt" in result.output


def test_batch_size_from_config(fake, tmp_path):
    (tmp_path / "custom.yaml").write_text("history:\n  batch_size: 20\n")

    result = invoke(fake, tmp_path, "--config", str(tmp_path / "custom.yaml"), "log", "--json")

    assert result.exit_code == 0, result.output
    assert len(json.loads(result.output)["commits"]) == 20
