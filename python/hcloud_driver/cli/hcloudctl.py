"""
hcloud_driver/cli/hcloudctl.py

Entry point for the `hcloudctl` script. Runs `hcloudctl <subcommand> [args...]`
as `python -m hcloud_driver.cli.<subcommand> [args...]` and exits with its status.
"""

import sys
import subprocess


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: hcloudctl <subcommand> [args...]")
        print("Subcommands: catalog")
        sys.exit(1)

    subcommand = sys.argv[1]
    subcommand_args = sys.argv[2:]

    cmd = [sys.executable, "-m", f"hcloud_driver.cli.{subcommand}"] + subcommand_args
    sys.exit(subprocess.call(cmd))
