"""Shared utilities: config loading and logging setup."""
