"""SFTP Deploy - upload a build directory to a server over SFTP with an SSH key."""

__version__ = "1.0.0"
