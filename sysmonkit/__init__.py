"""Data models and formatting for a system monitor: load graphs, open files, memory maps, file search, column state and dates."""

__version__ = "0.1.0"