"""
Configuration module for the L2 survey wrangling walkthrough.
"""

from .settings import get_config, config, reload_config

__all__ = ["get_config", "config", "reload_config"]
