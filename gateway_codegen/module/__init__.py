"""Module classes, instances, discovery, resolution and build orchestration."""

from .build import BuildOrchestrator
from .instance import (
    BuildResult,
    ModuleClass,
    ModuleDependency,
    ModuleInstance,
    PackageInfo,
    new_package_info,
)
from .registry import GeneratorRegistry, provides_spec
from .system import ModuleSystem, resolve_dependencies, sort_dependency_list, trim_selective
from .writer import FileWriter

__all__ = [
    "BuildOrchestrator",
    "BuildResult",
    "FileWriter",
    "GeneratorRegistry",
    "ModuleClass",
    "ModuleDependency",
    "ModuleInstance",
    "ModuleSystem",
    "PackageInfo",
    "new_package_info",
    "provides_spec",
    "resolve_dependencies",
    "sort_dependency_list",
    "trim_selective",
]
