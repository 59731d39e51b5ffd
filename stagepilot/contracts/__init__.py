"""Shared type contracts for untyped JSON documents."""
