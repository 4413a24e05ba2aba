"""Prompt files, status reporting, HTTP request handlers and queue watching for a prompt queue."""

__version__ = "0.1.0"