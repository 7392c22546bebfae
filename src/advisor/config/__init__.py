"""
Configuration management for kguardian advisor.
"""

from advisor.config.settings import AdvisorConfig, load_config_from_env

__all__ = [
    "AdvisorConfig",
    "load_config_from_env",
]
