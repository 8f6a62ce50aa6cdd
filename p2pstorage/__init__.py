"""Components for a peer-to-peer file store: content-addressed, optionally encrypted storage, messages, rate limiting, peer scoring and logging."""

__version__ = "0.1.0"