"""Synthetic error and trace load generator for telemetry backends."""

__version__ = "0.1.0"
