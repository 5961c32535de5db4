"""
STI Builder Builder Module

- Builder: Build strategy selection and orchestration
- ImageValidator: Image contract checks
- IncrementalArtifactManager: Detection and extraction of prior build artifacts
- BuildContextAssembler: Source staging, manifest rendering and packaging
- ContainerLifecycle: Short-lived helper containers

Usage:
    from stibuilder.builder import build, validate
    from stibuilder.datacls import BuildSpec

    result = build(BuildSpec(source="git://example.com/app.git", base_image="base", tag="app"))
"""

from .build import Builder, BuildLog, build
from .validate import ImageValidator, validate
from .artifacts import IncrementalArtifactManager
from .context import BuildContextAssembler, MANIFEST_TEMPLATE
from .lifecycle import ContainerLifecycle

__all__ = [
    'Builder',
    'BuildLog',
    'build',
    'ImageValidator',
    'validate',
    'IncrementalArtifactManager',
    'BuildContextAssembler',
    'MANIFEST_TEMPLATE',
    'ContainerLifecycle',
]
