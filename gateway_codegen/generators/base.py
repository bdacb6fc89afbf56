"""Shared plumbing for module generators."""

import posixpath
from typing import Dict, List

from gateway_codegen.idl import ThriftLoader
from gateway_codegen.module.instance import BuildResult, ModuleInstance


class Generator:
    """
    Base class of every (class, type) generator.

    Subclasses implement generate(instance) -> BuildResult and, when the spec
    can be computed without rendering, compute_spec(instance).
    """

    def __init__(self, template, helper, loader: ThriftLoader = None):
        self.template = template
        self.helper = helper
        self.loader = loader or ThriftLoader()

    def generate(self, instance: ModuleInstance) -> BuildResult:
        raise NotImplementedError

    def render(self, name: str, data) -> bytes:
        return self.template.render(name, data, self.helper)

    def dependencies_file(self, instance: ModuleInstance) -> Dict[str, bytes]:
        """module/dependencies.go listing the instance's direct dependencies."""
        return {
            "module/dependencies.go": self.render(
                "dependency_struct.jinja", dependency_struct_data(instance)
            )
        }


def base_name(instance: ModuleInstance) -> str:
    return posixpath.basename(instance.directory)


def dependency_struct_data(instance: ModuleInstance) -> dict:
    classes = []
    for class_name in instance.dependency_order:
        direct = instance.resolved_dependencies.get(class_name, [])
        if direct:
            classes.append({"name": class_name, "instances": direct})
    return {"instance": instance, "classes": classes}


def dependency_names(instances: List[ModuleInstance]) -> List[str]:
    return [instance.instance_name for instance in instances]
