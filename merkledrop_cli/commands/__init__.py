"""
CLI command modules.
"""

from merkledrop_cli.commands import build, verify, proof, sample

__all__ = ["build", "verify", "proof", "sample"]
