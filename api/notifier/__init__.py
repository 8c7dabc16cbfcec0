"""Notification dispatch service: queue in, channel out, acknowledgment back."""

__version__ = "0.1.0"
