"""dockstage CLI subcommands."""
