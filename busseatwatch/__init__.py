"""Bus seat schedules, alert rules, state fingerprints and the tracking database schema."""

__version__ = "0.1.0"