"""
STI Builder Data Classes

- requests: Request, BuildSpec, ValidationSpec, Env
- results: BuildResult, ValidationResult, ValidationCheck, ImageInfo, HelperRun
"""

from .requests import Request, BuildSpec, ValidationSpec, Env
from .results import BuildResult, ValidationResult, ValidationCheck, ImageInfo, HelperRun

__all__ = [
    'Request',
    'BuildSpec',
    'ValidationSpec',
    'Env',
    'BuildResult',
    'ValidationResult',
    'ValidationCheck',
    'ImageInfo',
    'HelperRun',
]
