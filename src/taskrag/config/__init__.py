"""Configuration management using pydantic-settings."""

from taskrag.config.settings import PipelineSettings, get_settings

__all__ = ["PipelineSettings", "get_settings"]
