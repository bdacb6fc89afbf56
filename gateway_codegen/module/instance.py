"""
Module system value types: classes, instances, dependencies and the
package information computed for every instance.
"""

import os
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

from gateway_codegen.casing import camel_case, title
from gateway_codegen.configs import ClassConfig


@dataclass
class ModuleClass:
    """
    A kind of module (client, endpoint, middleware, service).

    depends_on lists the classes whose instances this class's instances may
    depend on; depended_by declares the reverse edge from the other side.
    """

    name: str
    name_plural: str
    depends_on: List[str] = field(default_factory=list)
    depended_by: List[str] = field(default_factory=list)
    dependent_classes: List["ModuleClass"] = field(default_factory=list, repr=False)


@dataclass(frozen=True, order=True)
class ModuleDependency:
    class_name: str
    instance_name: str

    def __str__(self):
        return f"{self.class_name}/{self.instance_name}"


@dataclass
class PackageInfo:
    package_name: str
    package_alias: str
    generated_package_alias: str
    module_package_alias: str
    package_path: str
    generated_package_path: str
    module_package_path: str
    export_name: str
    export_type: str
    initializer_name: str
    qualified_instance_name: str
    is_export_generated: bool

    def import_package_path(self) -> str:
        """Path of the package that exports the instance."""
        return self.generated_package_path if self.is_export_generated else self.package_path

    def import_package_alias(self) -> str:
        return self.generated_package_alias if self.is_export_generated else self.package_alias


def new_package_info(
    package_root: str,
    base_directory: str,
    target_gen_dir: str,
    class_name: str,
    class_type: str,
    instance_name: str,
    instance_directory: str,
    is_export_generated: Optional[bool],
) -> PackageInfo:
    qualified_class_name = title(camel_case(class_name))
    qualified_instance_name = title(camel_case(instance_name))
    default_alias = camel_case(qualified_instance_name.lower()) + qualified_class_name

    relative_generated = os.path.relpath(target_gen_dir, base_directory)
    generated_package_path = str(PurePosixPath(package_root, relative_generated, instance_directory))

    if is_export_generated is None:
        is_export_generated = class_type != "custom"

    return PackageInfo(
        package_name=default_alias,
        package_alias=default_alias + "Static",
        generated_package_alias=default_alias + "Generated",
        module_package_alias=default_alias + "Module",
        package_path=str(PurePosixPath(package_root, instance_directory)),
        generated_package_path=generated_package_path,
        module_package_path=f"{generated_package_path}/module",
        export_name="New" + qualified_class_name,
        export_type=qualified_class_name,
        initializer_name="Initialize" + qualified_class_name,
        qualified_instance_name=qualified_instance_name,
        is_export_generated=is_export_generated,
    )


@dataclass(eq=False)
class ModuleInstance:
    """
    A configured module found on disk.

    Discovery fills the identity, config and package info; resolution fills
    the resolved and recursive dependencies; the build sets generated_spec.
    Instances compare by identity.
    """

    class_name: str
    class_type: str
    instance_name: str
    base_directory: str
    directory: str
    yaml_file_name: str
    yaml_file_bytes: bytes
    config: ClassConfig
    package_info: Optional[PackageInfo] = None
    target_gen_dir: str = ""
    dependencies: List[ModuleDependency] = field(default_factory=list)
    resolved_dependencies: Dict[str, List["ModuleInstance"]] = field(default_factory=dict, repr=False)
    recursive_dependencies: Dict[str, List["ModuleInstance"]] = field(default_factory=dict, repr=False)
    dependency_order: List[str] = field(default_factory=list)
    generated_spec: Any = field(default=None, repr=False)
    selective_building: bool = False

    def key(self) -> ModuleDependency:
        return ModuleDependency(self.class_name, self.instance_name)

    def __str__(self):
        return f"{self.class_name} {self.instance_name}"

    def depends_on_instance(self, other: "ModuleInstance") -> bool:
        """True when other is in this instance's recursive dependency set."""
        return other in self.recursive_dependencies.get(other.class_name, [])


@dataclass
class BuildResult:
    """Output of one generator run: files relative to the instance build dir plus the spec."""

    files: Dict[str, bytes] = field(default_factory=dict)
    spec: Any = None
