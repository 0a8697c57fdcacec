"""Deploy command - upload a directory over SFTP"""

from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console

from sftpdeploy.actions import write_outputs
from sftpdeploy.base import BaseCommand
from sftpdeploy.constants import (
    DEFAULT_PORT,
    DEFAULT_REMOTE_DIR,
    DEFAULT_SOURCE_DIR,
    DEFAULT_TIMEOUT,
    KEY_STRATEGIES,
    KEY_STRATEGY_FILE,
)
from sftpdeploy.exceptions import ConfigValidationError
from sftpdeploy.models.config import DeployConfig
from sftpdeploy.orchestrator import DeploymentOrchestrator


class DeployCommand(BaseCommand):
    """
    Deploy a local directory to a remote server.

    Features:
    - Inputs from options, SFTP_DEPLOY_* and GitHub Action INPUT_* variables
    - Private key masked in every line of output
    - Step outputs written to $GITHUB_OUTPUT inside Actions
    """

    def __init__(
        self,
        inputs: Dict[str, Any],
        log_file: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
        console: Optional[Console] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        super().__init__(verbose=verbose, json_output=json_output, console=console, env=env)
        self.inputs = inputs
        self.log_file = log_file

    def resolve_config(self) -> DeployConfig:
        """
        Build the validated config, reading the key file if one was given.

        Raises:
            ConfigValidationError: On missing or invalid inputs
        """
        inputs = dict(self.inputs)
        key_file = inputs.pop("private_key_file", None)
        if not inputs.get("private_key") and key_file:
            try:
                inputs["private_key"] = Path(key_file).expanduser().read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigValidationError(
                    "Cannot read private key file", context=f"{key_file}: {e.strerror}"
                ) from None

        if self.logger:
            self.logger.add_secret(inputs.get("private_key"))
        return DeployConfig.from_inputs(inputs)

    def execute(self) -> None:
        """Execute deploy command."""
        logger = self.init_logger(self.log_file)
        config = self.resolve_config()

        self.show_header(
            title="Deploy",
            details={
                "Target": config.target,
                "Port": config.port,
                "Source": config.source_dir,
                "Remote": config.remote_dir,
            },
        )

        orchestrator = DeploymentOrchestrator(config, logger, env=self.env)
        result = orchestrator.deploy()
        outputs = result.as_outputs()

        if write_outputs(outputs, self.env):
            logger.debug("Outputs written to GITHUB_OUTPUT")

        if self.json_output:
            self.output_json({"status": "success", **outputs})
            return

        for name, value in outputs.items():
            self.print_dim(f"{name}: {value}")
        self.print_success(f"Deployment complete ({result.files_deployed} files)")


@click.command()
@click.option("--host", envvar=["SFTP_DEPLOY_HOST", "INPUT_HOST"], help="SFTP host")
@click.option(
    "--username", "-u", envvar=["SFTP_DEPLOY_USERNAME", "INPUT_USERNAME"], help="SFTP username"
)
@click.option(
    "--private-key",
    envvar=["SFTP_DEPLOY_PRIVATE_KEY", "INPUT_PRIVATE_KEY"],
    help="SSH private key (prefer the environment variable)",
)
@click.option(
    "--private-key-file",
    envvar="SFTP_DEPLOY_PRIVATE_KEY_FILE",
    type=click.Path(dir_okay=False),
    help="Read the SSH private key from a file",
)
@click.option(
    "--port", "-p", envvar=["SFTP_DEPLOY_PORT", "INPUT_PORT"], default=str(DEFAULT_PORT),
    show_default=True, help="SFTP port",
)
@click.option(
    "--source-dir", "-s", envvar=["SFTP_DEPLOY_SOURCE_DIR", "INPUT_SOURCE_DIR"],
    default=DEFAULT_SOURCE_DIR, show_default=True, help="Local directory to upload",
)
@click.option(
    "--remote-dir", "-r", envvar=["SFTP_DEPLOY_REMOTE_DIR", "INPUT_REMOTE_DIR"],
    default=DEFAULT_REMOTE_DIR, show_default=True, help="Remote directory on the server",
)
@click.option(
    "--key-strategy",
    envvar=["SFTP_DEPLOY_KEY_STRATEGY", "INPUT_KEY_STRATEGY"],
    type=click.Choice(KEY_STRATEGIES, case_sensitive=False),
    default=KEY_STRATEGY_FILE,
    show_default=True,
    help="Hand the key to sftp as an identity file or through ssh-agent",
)
@click.option(
    "--known-hosts",
    envvar=["SFTP_DEPLOY_KNOWN_HOSTS", "INPUT_KNOWN_HOSTS"],
    help="known_hosts content; enables strict host key checking",
)
@click.option(
    "--recursive/--flat",
    envvar=["SFTP_DEPLOY_RECURSIVE", "INPUT_RECURSIVE"],
    default=False,
    help="Also upload sub-directories",
)
@click.option(
    "--timeout",
    envvar=["SFTP_DEPLOY_TIMEOUT", "INPUT_TIMEOUT"],
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Seconds before the transfer is aborted (0 disables)",
)
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to a file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.option("--json", "json_output", is_flag=True, help="Output result in JSON format")
def deploy(
    host,
    username,
    private_key,
    private_key_file,
    port,
    source_dir,
    remote_dir,
    key_strategy,
    known_hosts,
    recursive,
    timeout,
    log_file,
    verbose,
    json_output,
):
    """
    Upload a directory to a server over SFTP

    \b
    Examples:
      sftp-deploy deploy --host example.com -u deploy --private-key-file ~/.ssh/id_ed25519
      SFTP_DEPLOY_PRIVATE_KEY="$KEY" sftp-deploy deploy --host example.com -u deploy -s build
    """
    cmd = DeployCommand(
        inputs={
            "host": host,
            "username": username,
            "private_key": private_key,
            "private_key_file": private_key_file,
            "port": port,
            "source_dir": source_dir,
            "remote_dir": remote_dir,
            "key_strategy": key_strategy,
            "known_hosts": known_hosts,
            "recursive": recursive,
            "timeout": timeout,
        },
        log_file=log_file,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()
