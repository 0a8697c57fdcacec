"""SFTP Deploy CLI commands."""
