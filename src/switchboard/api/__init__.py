"""HTTP API for Switchboard."""

from switchboard.api.app import create_app

__all__ = ["create_app"]
