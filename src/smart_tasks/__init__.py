"""Personal task tracker with AI task breakdown and due-date reminders."""

__version__ = "0.1.0"
