"""Tests for template assets, the command runner and the CLI wiring."""

import sys
from unittest.mock import AsyncMock, patch

import pytest
import yaml

from kssh.cli import deploy as cli
from kssh.manifests.assets import (
    BOOTSTRAP_SCRIPT_FILE,
    REPLICA_TEMPLATE_FILE,
    SYSTEM_TEMPLATE_FILE,
    load_assets_from_dir,
)
from kssh.deployment.reconcile import ReconcileError, ReconcileReport
from kssh.utils.async_command_runner import CommandError, run_command


class TestAssets:
    """Test asset loading."""

    def test_default_assets_are_packaged(self, default_assets):
        assert default_assets.bootstrap_script.startswith("#!/bin/bash")
        assert "{{ namespace }}" in default_assets.system_template
        assert "{{ authorized_keys }}" in default_assets.replica_template
        assert default_assets.bootstrap_config_map_name == "bootstrap.sh"

    @pytest.mark.asyncio
    async def test_load_from_dir(self, tmp_path):
        (tmp_path / BOOTSTRAP_SCRIPT_FILE).write_text("echo custom\n")
        (tmp_path / SYSTEM_TEMPLATE_FILE).write_text("kind: ConfigMap\n")
        (tmp_path / REPLICA_TEMPLATE_FILE).write_text("kind: Secret\n")

        assets = await load_assets_from_dir(str(tmp_path))

        assert assets.bootstrap_script == "echo custom\n"
        assert assets.system_template == "kind: ConfigMap\n"
        assert assets.replica_template == "kind: Secret\n"

    @pytest.mark.asyncio
    async def test_load_from_dir_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            await load_assets_from_dir(str(tmp_path))


class TestRunCommand:
    """Test run_command against real subprocesses."""

    @pytest.mark.asyncio
    async def test_returns_stdout(self):
        out = await run_command([sys.executable, "-c", "print('hello')"])
        assert out == "hello"

    @pytest.mark.asyncio
    async def test_passes_stdin(self):
        out = await run_command(
            [sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"],
            input_data="abc",
        )
        assert out == "ABC"

    @pytest.mark.asyncio
    async def test_failure_keeps_stderr_and_code(self):
        script = "import sys; sys.stderr.write('Error from server (NotFound)'); sys.exit(3)"
        with pytest.raises(CommandError) as excinfo:
            await run_command([sys.executable, "-c", script])
        assert excinfo.value.return_code == 3
        assert "(NotFound)" in excinfo.value.stderr

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        with pytest.raises(CommandError, match="Failed to start"):
            await run_command(["definitely-not-a-real-binary-kssh"])


class TestCli:
    """Test the CLI entry point."""

    def test_render_prints_manifests_without_cluster(self, monkeypatch, capsys, keygen):
        monkeypatch.setattr(
            sys, "argv", ["kssh", "render", "--namespace", "ns1", "--replicas", "1"]
        )
        with patch("kssh.deployment.builder.generate_ssh_keypair", keygen), patch(
            "kssh.cli.deploy.KubectlCluster"
        ) as mock_cluster:
            cli.main()

        mock_cluster.assert_not_called()
        docs = list(yaml.safe_load_all(capsys.readouterr().out))
        assert [d["kind"] for d in docs] == ["ConfigMap", "Deployment", "Service", "Secret"]
        assert all(d["metadata"]["namespace"] == "ns1" for d in docs)

    def test_deploy_prints_summary(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["kssh", "deploy", "--replicas", "0"])
        report = ReconcileReport()
        with patch(
            "kssh.cli.deploy.apply_objects", new=AsyncMock(return_value=report)
        ) as mock_apply, patch("kssh.cli.deploy.KubectlCluster"):
            cli.main()

        objects, namespace = mock_apply.call_args.args[1:]
        assert [o.kind for o in objects] == ["ConfigMap"]
        assert namespace == "default"
        assert "0 object(s) created" in capsys.readouterr().out

    def test_reconcile_error_exits_nonzero(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["kssh", "deploy", "--replicas", "0"])
        with patch(
            "kssh.cli.deploy.apply_objects",
            new=AsyncMock(side_effect=ReconcileError("failed to apply Secret ns1/x: boom")),
        ), patch("kssh.cli.deploy.KubectlCluster"):
            with pytest.raises(SystemExit) as excinfo:
                cli.main()

        assert excinfo.value.code == 1
        assert "boom" in capsys.readouterr().err

    def test_invalid_namespace_exits_nonzero(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["kssh", "render", "--namespace", "Bad_NS"])
        with pytest.raises(SystemExit) as excinfo:
            cli.main()
        assert excinfo.value.code == 1
        assert "invalid arguments" in capsys.readouterr().err

    def test_template_without_kind_exits_nonzero(self, monkeypatch, capsys, tmp_path):
        (tmp_path / BOOTSTRAP_SCRIPT_FILE).write_text("echo hi\n")
        (tmp_path / SYSTEM_TEMPLATE_FILE).write_text("metadata:\n  name: x\n")
        (tmp_path / REPLICA_TEMPLATE_FILE).write_text("kind: Secret\n")
        monkeypatch.setattr(
            sys,
            "argv",
            ["kssh", "render", "--replicas", "0", "--template-dir", str(tmp_path)],
        )
        with pytest.raises(SystemExit) as excinfo:
            cli.main()

        assert excinfo.value.code == 1
        assert "manifest field 'kind'" in capsys.readouterr().err

    def test_status_lists_replica_objects(self, monkeypatch, capsys, fake_cluster):
        fake_cluster.add("Deployment", "pod-1", "ns1")
        fake_cluster.add("Deployment", "pod-0", "ns1")
        fake_cluster.add("Deployment", "unrelated", "ns1")
        monkeypatch.setattr(
            sys,
            "argv",
            ["kssh", "status", "--namespace", "ns1", "--name-prefix", "pod"],
        )
        with patch("kssh.cli.deploy.KubectlCluster", return_value=fake_cluster):
            cli.main()

        out = capsys.readouterr().out
        assert "Deployment: pod-0, pod-1" in out
        assert "Service: (none)" in out
