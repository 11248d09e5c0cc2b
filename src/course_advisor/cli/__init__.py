"""
CLI Module - Command-line interface for Course Advisor.
=======================================================

Usage:
    courseadvisor --help
    courseadvisor ingest catalog.txt --tag catalog
    courseadvisor query "What math courses are offered?"
    courseadvisor analyze transcript.txt

Components:
- main: Typer CLI application
"""

from course_advisor.cli.main import app, cli

__all__ = ["app", "cli"]
