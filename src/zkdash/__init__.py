"""zkdash - dashboard for a zettelkasten note index."""

__version__ = "0.1.0"
