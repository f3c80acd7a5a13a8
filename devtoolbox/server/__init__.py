"""Management API server for the plugin manager and tool registry."""

from devtoolbox.server.app import create_app

__all__ = ["create_app"]
