"""
mural-priority: Suggestion prioritization and state synchronization.

Scores customer suggestions on a multi-factor model, ranks them, and keeps
the administrative lifecycle of each suggestion (Jira link, roadmap
placement, development status, archival) in a persisted, observable store.
"""

__version__ = "0.1.0"
