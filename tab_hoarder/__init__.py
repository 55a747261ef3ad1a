"""Tab Hoarder: archive idle browser tabs, tag them by topic, replay saved sessions."""

__version__ = "0.1.0"
