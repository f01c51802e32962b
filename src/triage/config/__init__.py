"""Configuration package."""

from triage.config.settings import Settings

__all__ = ["Settings"]
