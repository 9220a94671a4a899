"""Command-line interface for dockstage."""
