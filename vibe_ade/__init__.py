"""vibe-ade - multi-pane terminal workspace with local/cloud agent routing."""

__version__ = "0.1.0"
