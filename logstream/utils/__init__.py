"""Shared utilities: logging, configuration, throttling."""
