"""
STI Builder Utils Module

- logger: Logging setup and configuration
- env: NAME=VALUE environment string parsing

Usage:
    from stibuilder.utils import setup_logger, parse_envs
"""

from .logger import setup_logger, parse_module_levels
from .env import parse_envs

__all__ = [
    'setup_logger',
    'parse_module_levels',
    'parse_envs',
]
