"""
UI package for the live match officiating desk.

This package contains the Flask web interface.
"""
from .web_app import create_app, run_web_app

__all__ = ["create_app", "run_web_app"]
