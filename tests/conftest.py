"""Shared test configuration: scenario fixtures from the harness plugin."""

pytest_plugins = ["lifecycle.fixtures"]
