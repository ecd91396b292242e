"""Root conftest — shared test configuration."""

import os

# Ensure tests don't accidentally use real keys or storage
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test-fake-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("STORAGE_BACKEND", "sql")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DISCORD_BOT_SECRET", "test-bot-secret")
