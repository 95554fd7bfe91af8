"""
Tests for the command line interface.
"""

import json
import random

import pytest

from talentflow import __version__
from talentflow.app import main
from talentflow.seed import JOB_TITLES, seed_jobs


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ["TALENTFLOW_DB", "TALENTFLOW_CHAOS", "TALENTFLOW_RETRIES",
                 "TALENTFLOW_REORDER_FAILURE_RATE", "TALENTFLOW_MUTATION_FAILURE_RATE"]:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cli(db_path, capsys):
    """Run the CLI against the temporary database and return its stdout."""
    def _run(*argv):
        main(["--db", str(db_path), *argv])
        return capsys.readouterr().out
    return _run


def _listed(cli):
    return json.loads(cli("list", "--json", "--page-size", "100"))["data"]


class TestCommands:

    def test_version(self, capsys):
        main(["--version"])
        assert capsys.readouterr().out.strip() == __version__

    def test_init(self, cli, db_path):
        out = cli("init")
        assert "Database ready" in out
        assert db_path.exists()

    def test_seed_then_check(self, cli):
        assert "Seeded 7 jobs" in cli("seed", "--count", "7")
        assert "OK: 7 jobs hold orders 1..7" in cli("check")

    def test_create_and_list(self, cli):
        cli("create", "--title", "Backend Engineer", "--tags", "remote, senior")
        cli("create", "--title", "Designer", "--order", "1")

        jobs = _listed(cli)
        assert [job["title"] for job in jobs] == ["Designer", "Backend Engineer"]
        assert jobs[1]["tags"] == ["remote", "senior"]

    def test_reorder(self, cli):
        for title in ["A", "B", "C"]:
            cli("create", "--title", title)
        job_c = _listed(cli)[2]

        out = cli("reorder", str(job_c["id"]), "--from", "3", "--to", "1")

        assert "Moved:" in out
        assert [job["title"] for job in _listed(cli)] == ["C", "A", "B"]

    def test_update_and_delete(self, cli):
        for title in ["A", "B", "C"]:
            cli("create", "--title", title)
        job_a = _listed(cli)[0]

        cli("update", str(job_a["id"]), "--order", "3", "--status", "archived")
        assert [job["title"] for job in _listed(cli)] == ["B", "C", "A"]

        assert "Deleted" in cli("delete", str(job_a["id"]))
        assert "OK: 2 jobs" in cli("check")

    def test_show(self, cli):
        cli("create", "--title", "Solo")
        job = _listed(cli)[0]
        assert json.loads(cli("show", str(job["id"])))["slug"] == "solo"

    def test_no_command_prints_help(self, cli):
        assert "usage" in cli().lower()


class TestErrors:

    def test_invalid_input_exits_2(self, cli, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli("create", "--title", "   ")
        assert exc_info.value.code == 2
        assert "Title is required" in capsys.readouterr().out

    def test_stale_reorder(self, cli):
        for title in ["A", "B"]:
            cli("create", "--title", title)
        job_b = _listed(cli)[1]

        with pytest.raises(SystemExit) as exc_info:
            cli("reorder", str(job_b["id"]), "--from", "1", "--to", "2")
        assert "conflict" in str(exc_info.value.code)

    def test_missing_job(self, cli):
        cli("init")
        with pytest.raises(SystemExit) as exc_info:
            cli("show", "99")
        assert "not_found" in str(exc_info.value.code)

    def test_chaos_failure_leaves_store_intact(self, cli, monkeypatch):
        for title in ["A", "B", "C"]:
            cli("create", "--title", title)
        job_a = _listed(cli)[0]
        monkeypatch.setenv("TALENTFLOW_CHAOS", "1")
        monkeypatch.setenv("TALENTFLOW_REORDER_FAILURE_RATE", "1.0")

        with pytest.raises(SystemExit) as exc_info:
            cli("reorder", str(job_a["id"]), "--from", "1", "--to", "3")

        assert "safe to retry" in str(exc_info.value.code)
        assert [job["title"] for job in _listed(cli)] == ["A", "B", "C"]


class TestSeed:

    def test_seed_replaces_existing(self, service):
        service.create_job({"title": "Old"})
        created = seed_jobs(service, count=10, rng=random.Random(3))

        assert [job["order"] for job in created] == list(range(1, 11))
        assert all(job["title"] in JOB_TITLES for job in created)
        assert all(1 <= len(job["tags"]) <= 4 for job in created)
        assert len({job["slug"] for job in created}) == 10
        assert service.verify_ordering() == 10
