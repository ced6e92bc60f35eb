#!/usr/bin/env python3
"""
Main entry point for the live match officiating web application.

This script launches the Flask-based web server using settings read from
the LIVEMATCH_* environment variables.
"""
from livematch.ui.web_app import run_web_app

if __name__ == "__main__":
    run_web_app()
