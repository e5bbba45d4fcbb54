"""FeedQ - per-user activity stream with notification filters and digest queue."""

__version__ = "1.0.0"
