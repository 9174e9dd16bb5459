"""
Module 08 - Merkledrop CLI

Command-line interface for building and verifying Merkle distributions.

Usage:
    python -m merkledrop_cli build rewards.csv --out ./merkle-output
    python -m merkledrop_cli verify ./merkle-output
    python -m merkledrop_cli proof ./merkle-output 0x742d...
    python -m merkledrop_cli sample --out sample.csv --count 100
"""

__version__ = "0.1.0"
