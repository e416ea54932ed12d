"""Core: errors and constants shared by every layer."""
