"""Allow `python -m sftpdeploy`."""

from sftpdeploy.main import main

main()
