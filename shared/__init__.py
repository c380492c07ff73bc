"""
Shared utilities for the mirror map tooling.

This package contains common functionality used by the CLI and launcher scripts:
- logging_config: consistent log formatting and handler setup
"""
