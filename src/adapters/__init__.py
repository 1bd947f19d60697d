"""Adapters implementing the core ports for GitHub/Gitee/Gitcode, SQLite,
HTML rendering, local checkout discovery and Telegram delivery."""
