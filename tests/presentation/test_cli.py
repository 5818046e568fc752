"""Tests for CLI module."""

import json
import pytest
from unittest.mock import patch, AsyncMock, MagicMock

from factroll.domain.errors import BatchApplyError
from factroll.domain.value_objects.rollout_result import BatchReport, RolloutResult
from factroll.presentation.cli.cli import async_main

COMMIT = "3f2a9c1d5e7b9a0c1d2e3f4a5b6c7d8e9f0a1b2c"

INVENTORY = {
    "groups": {
        "web": {"environment": "production", "nodes": ["a", "b", "c", "d"]},
        "empty": {"environment": "production", "nodes": []},
    },
    "facts": {
        "a": {"region": "us"},
        "b": {"region": "us"},
        "c": {"region": "eu"},
        "d": {"region": "eu"},
    },
    "branches": {"target": "0000000"},
}


@pytest.fixture
def cli_files(tmp_path):
    """Returns the global flags pointing at a temporary inventory."""

    def _write(**overrides):
        inventory = tmp_path / "inventory.json"
        inventory.write_text(json.dumps({**INVENTORY, **overrides}))
        return ["factroll", "-c", str(tmp_path / "factroll.json"), "-i", str(inventory)]

    return _write


def _rollout_args(*extra):
    return [
        "rollout", "-r", COMMIT, "-g", "web", "-b", "target", "-f", "region",
        "--rollout-id", "r1", *extra,
    ]


def _make_container(result):
    container = MagicMock()
    container.run_rollout.execute = AsyncMock(return_value=result)
    return container


class TestCLIHelp:
    @pytest.mark.asyncio
    async def test_no_command_prints_help(self, capsys):
        with patch("sys.argv", ["factroll", "-c", "/nonexistent/factroll.json"]):
            await async_main()
        assert "rolling configuration rollouts" in capsys.readouterr().out

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["rollout", "plan"])
    async def test_subcommand_help(self, command):
        with patch("sys.argv", ["factroll", command, "--help"]), \
             pytest.raises(SystemExit, match="0"):
            await async_main()


class TestRolloutCommand:
    @pytest.mark.asyncio
    async def test_successful_rollout(self, cli_files, capsys):
        with patch("sys.argv", cli_files() + _rollout_args()):
            await async_main()

        out = capsys.readouterr().out
        assert "[*] Rolling out 3f2a9c1d to group 'web' by fact 'region'" in out
        assert "[+] apply us: 2 node(s)" in out
        assert "[+] apply eu: 2 node(s)" in out
        assert "[+] Rollout r1 succeeded" in out

    @pytest.mark.asyncio
    async def test_failed_node_exits_nonzero(self, cli_files, capsys):
        with patch("sys.argv", cli_files(failing_nodes=["d"]) + _rollout_args()), \
             pytest.raises(SystemExit) as exc_info:
            await async_main()

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "[-] apply eu: 2 node(s)" in out
        assert "[failed nodes: d]" in out

    @pytest.mark.asyncio
    async def test_json_output(self, cli_files, capsys):
        with patch("sys.argv", cli_files() + _rollout_args("--json", "--noop")):
            await async_main()

        out = capsys.readouterr().out
        body = out[out.index("{"):out.rindex("}") + 1]
        data = json.loads(body)
        assert data["success"] is True
        assert [b["key"] for b in data["batches"]] == ["us", "eu"]

    @pytest.mark.asyncio
    async def test_direct_deploy(self, cli_files, capsys):
        args = _rollout_args()
        args[args.index("web")] = "empty"
        with patch("sys.argv", cli_files() + args):
            await async_main()

        assert "succeeded via direct deploy" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_invalid_revision(self, capsys):
        argv = ["factroll", "-c", "/nonexistent/factroll.json", "rollout",
                "-r", "nope", "-g", "web", "-f", "region"]
        with patch("sys.argv", argv), pytest.raises(SystemExit) as exc_info:
            await async_main()

        assert exc_info.value.code == 2
        assert "[-] Invalid rollout parameters" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_missing_inventory(self, tmp_path, capsys):
        argv = ["factroll", "-c", str(tmp_path / "factroll.json"),
                "-i", str(tmp_path / "missing.json")] + _rollout_args()
        with patch("sys.argv", argv), pytest.raises(SystemExit) as exc_info:
            await async_main()

        assert exc_info.value.code == 1
        assert "Inventory file not found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_inputs_from_config(self, tmp_path, capsys):
        config_file = tmp_path / "factroll.json"
        config_file.write_text(json.dumps({
            "rollout": {"revision": COMMIT, "group": "web", "branch": "target",
                        "fact": "region", "noop": True, "batch_delay_seconds": 3},
        }))
        result = RolloutResult(rollout_id="r9", success=True, state="done")
        container = _make_container(result)

        with patch("sys.argv", ["factroll", "-c", str(config_file), "rollout"]), \
             patch("factroll.presentation.cli.cli.create_container", return_value=container):
            await async_main()

        request = container.run_rollout.execute.await_args.args[0]
        assert request.revision == COMMIT
        assert request.target_group == "web"
        assert request.noop is True
        assert request.batch_delay_seconds == 3
        assert "[+] Rollout r9 succeeded" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_flags_override_config(self, tmp_path):
        config_file = tmp_path / "factroll.json"
        config_file.write_text(json.dumps({"rollout": {"fact": "datacenter"}}))
        container = _make_container(RolloutResult(rollout_id="r1", success=True, state="done"))

        argv = ["factroll", "-c", str(config_file)] + _rollout_args(
            "--missing-fact", "exclude", "--delay", "1.5"
        )
        with patch("sys.argv", argv), \
             patch("factroll.presentation.cli.cli.create_container", return_value=container):
            await async_main()

        request = container.run_rollout.execute.await_args.args[0]
        assert request.fact == "region"
        assert request.batch_delay_seconds == 1.5
        assert request.missing_fact_policy.value == "exclude"

    @pytest.mark.asyncio
    async def test_failure_report(self, tmp_path, capsys):
        error = BatchApplyError("1 node(s) failed", batch_key="eu", nodes=["d"])
        result = RolloutResult(
            rollout_id="r1",
            success=False,
            state="failed",
            cause=error.describe(),
            phase="apply",
            failed_nodes=("d",),
            batch_reports=(BatchReport("eu", ("c", "d"), "apply", ("d",), "boom"),),
            error=error,
        )
        container = _make_container(result)

        argv = ["factroll", "-c", str(tmp_path / "factroll.json")] + _rollout_args()
        with patch("sys.argv", argv), \
             patch("factroll.presentation.cli.cli.create_container", return_value=container), \
             pytest.raises(SystemExit, match="1"):
            await async_main()

        out = capsys.readouterr().out
        assert "[-] apply eu: 2 node(s)" in out
        assert "[-] Rollout r1 failed during apply: [apply] batch 'eu'" in out

    @pytest.mark.asyncio
    async def test_crash(self, tmp_path, capsys):
        container = MagicMock()
        container.run_rollout.execute = AsyncMock(side_effect=RuntimeError("loop died"))

        argv = ["factroll", "-c", str(tmp_path / "factroll.json")] + _rollout_args()
        with patch("sys.argv", argv), \
             patch("factroll.presentation.cli.cli.create_container", return_value=container), \
             pytest.raises(SystemExit, match="1"):
            await async_main()

        assert "[-] Rollout crashed: loop died" in capsys.readouterr().out


class TestPlanCommand:
    @pytest.mark.asyncio
    async def test_plan(self, cli_files, capsys):
        with patch("sys.argv", cli_files() + ["plan", "-g", "web", "-f", "region"]):
            await async_main()

        out = capsys.readouterr().out
        assert "1. us: a, b" in out
        assert "2. eu: c, d" in out

    @pytest.mark.asyncio
    async def test_plan_excluded_nodes(self, cli_files, capsys):
        argv = cli_files(facts={"a": {"region": "us"}}) + ["plan", "-g", "web", "-f", "region"]
        with patch("sys.argv", argv):
            await async_main()

        assert "[!] Nodes without fact: b, c, d" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_plan_empty_group(self, cli_files, capsys):
        with patch("sys.argv", cli_files() + ["plan", "-g", "empty", "-f", "region"]):
            await async_main()

        assert "deploy the branch directly" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_plan_unknown_group(self, cli_files, capsys):
        with patch("sys.argv", cli_files() + ["plan", "-g", "db", "-f", "region"]), \
             pytest.raises(SystemExit, match="1"):
            await async_main()

        assert "[-] Planning failed" in capsys.readouterr().out
