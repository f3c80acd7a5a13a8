"""Developer toolbox with a runtime plugin system and tool registry."""

__version__ = "1.0.0"
