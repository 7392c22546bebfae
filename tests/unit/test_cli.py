"""
Unit tests for the advisor CLI.

Tests cover:
- Argument parsing for gen networkpolicy and gen seccomp
- Configuration loading and flag overrides
- Command dispatch, batch reporting and exit codes
"""

from __future__ import annotations

import argparse
from unittest.mock import MagicMock, patch

import pytest

from advisor.batch import BatchItemResult, BatchResult
from advisor.broker import BrokerTransportError
from advisor.cli import create_parser, load_config, main
from advisor.cli_gen import cmd_gen
from advisor.config import AdvisorConfig
from advisor.models import LivePod, SyscallRecord


class TestCreateParser:
    """Tests for the argument parser."""

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "advisor" in capsys.readouterr().out

    def test_networkpolicy_args(self):
        args = create_parser().parse_args(
            [
                "gen",
                "networkpolicy",
                "web-0",
                "api-0",
                "-n",
                "shop",
                "--type",
                "cilium",
                "--dry-run",
                "--output-dir",
                "netpols",
                "--workers",
                "4",
            ]
        )
        assert args.command == "gen"
        assert args.gen_command == "networkpolicy"
        assert args.pods == ["web-0", "api-0"]
        assert args.namespace == "shop"
        assert args.policy_type == "cilium"
        assert args.dry_run is True
        assert args.output_dir == "netpols"
        assert args.workers == 4

    def test_netpol_alias(self):
        args = create_parser().parse_args(["gen", "netpol", "-A"])
        assert args.gen_command == "netpol"
        assert args.all_namespaces is True
        assert args.pods == []

    @pytest.mark.parametrize("workers", ["0", "-2", "many"])
    def test_rejects_invalid_workers(self, workers):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["gen", "seccomp", "--workers", workers])

    def test_rejects_unknown_type(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["gen", "networkpolicy", "--type", "calico"])

    def test_seccomp_args(self):
        args = create_parser().parse_args(
            ["gen", "seccomp", "web-0", "--default-action", "SCMP_ACT_LOG"]
        )
        assert args.gen_command == "seccomp"
        assert args.default_action == "SCMP_ACT_LOG"

    def test_global_flags(self):
        args = create_parser().parse_args(
            ["-vv", "--log-format", "json", "--broker-url", "http://b:9090", "gen"]
        )
        assert args.verbose == 2
        assert args.log_format == "json"
        assert args.broker_url == "http://b:9090"


class TestLoadConfig:
    """Tests for load_config."""

    def test_broker_url_flag_wins(self, tmp_path):
        path = tmp_path / "advisor.yaml"
        path.write_text("broker_url: http://from-file:9090\noutput_dir: out\n")
        args = argparse.Namespace(config=str(path), broker_url="http://flag:9090")

        config = load_config(args)

        assert config.broker_url == "http://flag:9090"
        assert config.output_dir == "out"

    def test_environment_when_no_file(self, monkeypatch):
        monkeypatch.delenv("ADVISOR_CONFIG_FILE", raising=False)
        monkeypatch.setenv("ADVISOR_BROKER_URL", "http://env:9090")
        args = argparse.Namespace(config=None, broker_url=None)
        assert load_config(args).broker_url == "http://env:9090"


class TestMain:
    """Tests for main."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_dispatches_gen(self):
        with patch("advisor.cli.cmd_gen", return_value=0) as cmd:
            assert main(["gen", "seccomp", "web-0"]) == 0
        args, config, logger = cmd.call_args[0]
        assert args.pods == ["web-0"]
        assert isinstance(config, AdvisorConfig)

    def test_missing_config_file(self, tmp_path):
        assert main(["--config", str(tmp_path / "missing.yaml"), "gen"]) == 1

    def test_domain_errors_exit_1(self):
        with patch("advisor.cli.cmd_gen", side_effect=BrokerTransportError("refused")):
            assert main(["gen", "seccomp"]) == 1


class TestCmdGen:
    """Tests for cmd_gen."""

    @pytest.fixture
    def pods(self):
        return [LivePod(name="web-0", namespace="shop"), LivePod(name="api-0", namespace="shop")]

    @pytest.fixture
    def lister(self, pods):
        with patch("advisor.cli_gen.PodLister") as lister_cls:
            lister_cls.return_value.list_pods.return_value = pods
            yield lister_cls

    def parse(self, *argv):
        return create_parser().parse_args(["gen", *argv])

    def test_no_subcommand(self, capsys):
        assert cmd_gen(self.parse(), AdvisorConfig(), MagicMock()) == 1
        assert "Usage" in capsys.readouterr().out

    def test_no_pods(self, lister):
        lister.return_value.list_pods.return_value = []
        logger = MagicMock()
        assert cmd_gen(self.parse("seccomp"), AdvisorConfig(), logger) == 0
        logger.warning.assert_called_once()

    def test_networkpolicy_success(self, lister, pods, capsys):
        result = BatchResult(
            items=[
                BatchItemResult(index=0, pod_name="web-0", namespace="shop", output="/o/web.yaml"),
                BatchItemResult(index=1, pod_name="api-0", namespace="shop", output=None),
            ]
        )
        config = AdvisorConfig()
        with patch("advisor.cli_gen.create_policy_service") as factory:
            service = factory.return_value
            service.batch_generate_and_handle_policies.return_value = result

            code = cmd_gen(
                self.parse("networkpolicy", "-n", "shop", "--type", "cilium", "--dry-run"),
                config,
                MagicMock(),
            )

        assert code == 0
        assert config.dry_run is True
        service.init_output_directory.assert_called_once()
        call = service.batch_generate_and_handle_policies.call_args
        assert call[0] == (pods, "cilium")
        lister.return_value.list_pods.assert_called_once_with(
            names=[], namespace="shop", all_namespaces=False
        )
        assert "shop/web-0: /o/web.yaml" in capsys.readouterr().out

    def test_default_type_from_config(self, lister, pods):
        config = AdvisorConfig(default_policy_type="cilium")
        with patch("advisor.cli_gen.create_policy_service") as factory:
            factory.return_value.batch_generate_and_handle_policies.return_value = BatchResult()
            cmd_gen(self.parse("netpol"), config, MagicMock())
        call = factory.return_value.batch_generate_and_handle_policies.call_args
        assert call[0][1] == "cilium"

    def test_seccomp_failure_exit_code(self, lister, pods, tmp_path):
        result = BatchResult(
            items=[
                BatchItemResult(index=0, pod_name="web-0", namespace="shop", output="p"),
                BatchItemResult(
                    index=1, pod_name="api-0", namespace="shop", error=ValueError("bad")
                ),
            ]
        )
        config = AdvisorConfig()
        with patch("advisor.cli_gen.SeccompService") as service_cls:
            service_cls.return_value.generate_seccomp_profiles.return_value = result
            code = cmd_gen(
                self.parse(
                    "seccomp",
                    "--output-dir",
                    str(tmp_path),
                    "--default-action",
                    "SCMP_ACT_LOG",
                    "--workers",
                    "2",
                ),
                config,
                MagicMock(),
            )

        assert code == 1
        kwargs = service_cls.call_args[1]
        assert kwargs["output_dir"] == str(tmp_path)
        assert kwargs["default_action"] == "SCMP_ACT_LOG"
        assert service_cls.return_value.generate_seccomp_profiles.call_args[1]["max_workers"] == 2

    def test_interrupt_sets_cancel(self, lister):
        with patch("advisor.cli_gen.SeccompService") as service_cls:
            service_cls.return_value.generate_seccomp_profiles.side_effect = KeyboardInterrupt
            code = cmd_gen(self.parse("seccomp"), AdvisorConfig(), MagicMock())

        assert code == 130
        cancel = service_cls.return_value.generate_seccomp_profiles.call_args[1]["cancel"]
        assert cancel.is_set()

    def test_interrupt_stops_running_batch(self, lister, tmp_path):
        """Test Ctrl-C during a parallel batch leaves queued pods unprocessed."""
        lister.return_value.list_pods.return_value = [
            LivePod(name=f"pod-{i}", namespace="shop") for i in range(6)
        ]
        started = []

        def fetch_syscalls(pod_name, cancel=None):
            started.append(pod_name)
            if pod_name == "pod-0":
                raise KeyboardInterrupt
            cancel.wait(2)
            return [SyscallRecord(pod_name=pod_name, syscalls=["read"], arch="x86_64")]

        with patch("advisor.cli_gen.BrokerClient") as broker_cls:
            broker_cls.return_value.fetch_syscalls.side_effect = fetch_syscalls
            code = cmd_gen(
                self.parse("seccomp", "--workers", "2", "--output-dir", str(tmp_path)),
                AdvisorConfig(),
                MagicMock(),
            )

        assert code == 130
        assert len(started) <= 3
        assert not (tmp_path / "pod-5-seccomp.json").exists()
