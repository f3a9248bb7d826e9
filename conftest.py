"""Global pytest configuration."""

import os

# Use the deterministic stub client for tests before any imports
os.environ.setdefault("OPENAI_API_KEY", "")
