"""StagePilot command-line interface."""
