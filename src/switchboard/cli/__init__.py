"""Switchboard command-line interface."""
