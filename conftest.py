"""Repository-level pytest setup: keep tests off any real scoring service."""

import os

os.environ.setdefault("SCORING_API_URL", "http://scoring.test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
