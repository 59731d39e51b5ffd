"""StagePilot CLI command groups."""
