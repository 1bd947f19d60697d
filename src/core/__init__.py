"""Core domain package for repowatch.

Core contains repository resolution, fetching, deduplication, formatting and
fan-out logic without any HTTP, Telegram or storage-specific code, keeping
the business logic portable.
"""
