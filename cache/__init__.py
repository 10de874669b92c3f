"""Persistent state for the sorter: settings store and contributor record cache."""
