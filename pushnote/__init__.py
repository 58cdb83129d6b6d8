"""pushnote - git push notifications for Slack-compatible chat webhooks."""

__version__ = "0.1.0"
