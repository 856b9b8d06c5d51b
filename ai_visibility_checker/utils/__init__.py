"""Shared utilities: UTC timestamps, structured logging, and console output."""
