"""Audit YAML, JSON and TOML configuration files for key conflicts, shadowing,
plain-text secrets, deprecated fields and redundant values."""

__version__ = "0.1.0"