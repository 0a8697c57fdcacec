from pathlib import Path

import pytest

from sftpdeploy.exceptions import TransferError
from sftpdeploy.models import AgentCredential, BatchScript, ExecutionResult, IdentityFileCredential
from sftpdeploy.services import TransferExecutor, TransferOptions
from sftpdeploy.services.transfer_service import classify_stderr_line
from tests.conftest import FakeRunner

SCRIPT = BatchScript(path=Path("/tmp/sftp_batch"), content="-mkdir /r\ncd /r\n")
IDENTITY = IdentityFileCredential(path=Path("/tmp/deploy_identity"))


def run_transfer(executor, credential=IDENTITY, port=22, options=None):
    return executor.run(credential, "test-host", port, "test-user", SCRIPT, options)


class TestCommand:
    def test_identity_file_command(self, logger):
        runner = FakeRunner()

        run_transfer(TransferExecutor(logger, runner), port=2222)

        assert runner.calls[0].args == [
            "sftp",
            "-o",
            "StrictHostKeyChecking=no",
            "-o",
            "UserKnownHostsFile=/dev/null",
            "-o",
            "BatchMode=yes",
            "-i",
            "/tmp/deploy_identity",
            "-b",
            "/tmp/sftp_batch",
            "-P",
            "2222",
            "test-user@test-host",
        ]

    def test_agent_credential_uses_environment(self, logger):
        runner = FakeRunner()
        credential = AgentCredential(socket_path="/tmp/agent.1234", agent_pid="1234")

        run_transfer(TransferExecutor(logger, runner), credential=credential,
                     options=TransferOptions(env={"PATH": "/usr/bin"}))

        call = runner.calls[0]
        assert "-i" not in call.args
        assert call.env == {
            "PATH": "/usr/bin",
            "SSH_AUTH_SOCK": "/tmp/agent.1234",
            "SSH_AGENT_PID": "1234",
        }

    def test_known_hosts_enables_strict_checking(self, logger):
        runner = FakeRunner()
        options = TransferOptions(known_hosts_file=Path("/tmp/deploy_known_hosts"))

        run_transfer(TransferExecutor(logger, runner), options=options)

        args = runner.calls[0].args
        assert "StrictHostKeyChecking=yes" in args
        assert "UserKnownHostsFile=/tmp/deploy_known_hosts" in args
        assert "StrictHostKeyChecking=no" not in args

    def test_custom_binary_and_timeout(self, logger):
        runner = FakeRunner()
        options = TransferOptions(binary="/opt/bin/sftp", timeout=30)

        run_transfer(TransferExecutor(logger, runner), options=options)

        assert runner.calls[0].args[0] == "/opt/bin/sftp"
        assert runner.calls[0].timeout == 30


class TestOutcome:
    def test_success_returns_report(self, logger):
        runner = FakeRunner({"sftp": ExecutionResult(0, stdout="sftp> put a\n", duration_seconds=1.5)})

        report = run_transfer(TransferExecutor(logger, runner))

        assert report.returncode == 0
        assert report.duration_seconds == 1.5

    def test_nonzero_exit_raises_even_with_clean_streams(self, logger):
        runner = FakeRunner({"sftp": ExecutionResult(1)})

        with pytest.raises(TransferError) as excinfo:
            run_transfer(TransferExecutor(logger, runner))

        assert excinfo.value.returncode == 1
        assert "exit code 1" in str(excinfo.value)

    def test_failure_context_is_last_stderr_line(self, logger):
        stderr = "Connected to test-host.\nremote open(\"/r/a\"): Permission denied\n"
        runner = FakeRunner({"sftp": ExecutionResult(1, stderr=stderr)})

        with pytest.raises(TransferError) as excinfo:
            run_transfer(TransferExecutor(logger, runner))

        assert excinfo.value.context == 'remote open("/r/a"): Permission denied'

    def test_failure_context_is_masked(self, logger):
        logger.add_secret("hunter2")
        runner = FakeRunner({"sftp": ExecutionResult(255, stderr="bad key hunter2\n")})

        with pytest.raises(TransferError) as excinfo:
            run_transfer(TransferExecutor(logger, runner))

        assert "hunter2" not in str(excinfo.value)

    def test_spawn_failure_raises_transfer_error(self, logger):
        runner = FakeRunner({"sftp": FileNotFoundError(2, "No such file or directory")})

        with pytest.raises(TransferError, match="failed to start") as excinfo:
            run_transfer(TransferExecutor(logger, runner))

        assert isinstance(excinfo.value.__cause__, FileNotFoundError)

    def test_timeout_raises_transfer_error(self, logger):
        runner = FakeRunner({"sftp": TimeoutError("Command timed out after 5s")})

        with pytest.raises(TransferError, match="timed out"):
            run_transfer(TransferExecutor(logger, runner), options=TransferOptions(timeout=5))


class TestStreamLogging:
    @pytest.mark.parametrize(
        "line,level",
        [
            ("Error: connection reset", "ERROR"),
            ("fatal: could not read", "ERROR"),
            ("Warning: Permanently added 'h' to the list of known hosts.", "WARNING"),
            ("Connected to test-host.", "INFO"),
        ],
    )
    def test_classify_stderr_line(self, line, level):
        assert classify_stderr_line(line) == level

    def test_streams_are_logged_by_level(self, console, output):
        from sftpdeploy.logger import DeployLogger

        logger = DeployLogger(console=console, github_actions=True)
        stderr = "Warning: Permanently added 'h'\nError: boom\nConnected to h.\n"
        runner = FakeRunner({"sftp": ExecutionResult(0, stdout="Uploading a\n", stderr=stderr)})

        run_transfer(TransferExecutor(logger, runner))

        text = output()
        assert "::warning::Warning: Permanently added 'h'" in text
        assert "::error::Error: boom" in text
        assert "Connected to h." in text
        assert "Uploading a" in text
