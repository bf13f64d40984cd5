# CUI // SP-CTI
"""Command-line entry point for the legacy SDK migrator."""
