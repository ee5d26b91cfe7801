"""Command line interface for bilanz."""
