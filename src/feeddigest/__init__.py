"""FeedDigest - RSS 批量摘要服务."""

__version__ = "0.1.0"
