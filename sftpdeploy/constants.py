"""
SFTP Deploy Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Default Inputs
DEFAULT_PORT = 22
DEFAULT_SOURCE_DIR = "./dist"
DEFAULT_REMOTE_DIR = "/var/www/html"
DEFAULT_TIMEOUT = 600
DEFAULT_SFTP_BINARY = "sftp"

# Key Strategies
KEY_STRATEGY_FILE = "file"
KEY_STRATEGY_AGENT = "agent"
KEY_STRATEGIES = [KEY_STRATEGY_FILE, KEY_STRATEGY_AGENT]

# Temporary Artifacts (under RUNNER_TEMP or the platform temp dir)
IDENTITY_FILE_NAME = "deploy_identity"
KNOWN_HOSTS_FILE_NAME = "deploy_known_hosts"
BATCH_FILE_NAME = "sftp_batch"

# File Permissions
SSH_KEY_PERMISSIONS = 0o600

# ssh-agent Environment
SSH_AUTH_SOCK = "SSH_AUTH_SOCK"
SSH_AGENT_PID = "SSH_AGENT_PID"

# GitHub Actions Environment
RUNNER_TEMP_ENV = "RUNNER_TEMP"
GITHUB_ACTIONS_ENV = "GITHUB_ACTIONS"
GITHUB_OUTPUT_ENV = "GITHUB_OUTPUT"

# Outputs
OUTPUT_DEPLOYED_FILES = "deployed-files"
OUTPUT_DEPLOYMENT_TIME = "deployment-time"

# Tool Names (for doctor and pre-flight checks)
REQUIRED_TOOLS = {
    KEY_STRATEGY_FILE: ["sftp"],
    KEY_STRATEGY_AGENT: ["sftp", "ssh-agent", "ssh-add"],
}

# Stream Classification Markers
ERROR_MARKERS = ["Error", "error:", "fatal"]
WARNING_MARKERS = ["Warning"]

# Log Configuration
LOG_TIME_FORMAT = "%H:%M:%S"
SECRET_MASK = "***"

# Characters that would end an sftp batch line
LINE_BREAKS = ("\n", "\r")
