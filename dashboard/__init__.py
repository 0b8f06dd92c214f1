"""LanSweep Dashboard — Public API

Flask app exposing the local interface query and an HTTP-polling event
channel for a browser UI.

Usage:
    from dashboard.app import create_app, run_dashboard, ScanService
"""
from dashboard.app import create_app, run_dashboard, default_range, ScanService

__all__ = [
    "create_app",
    "run_dashboard",
    "default_range",
    "ScanService",
]
