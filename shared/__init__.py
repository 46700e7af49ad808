"""
Shared utilities for the relay dashboard.

This package contains common functionality used by the dashboard service and its launchers:
- logging_config: consistent logging setup for every entrypoint
"""
