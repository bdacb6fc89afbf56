"""Service generator: main package, service wiring and module initializer."""

from dataclasses import dataclass, field
from typing import List

from gateway_codegen.generators.base import Generator
from gateway_codegen.module.instance import BuildResult


@dataclass
class ServiceSpec:
    name: str
    service_type: str
    endpoints: List[object] = field(default_factory=list)
    config: dict = field(default_factory=dict)


class ServiceGenerator(Generator):
    def compute_spec(self, instance) -> ServiceSpec:
        endpoints = []
        for endpoint in instance.recursive_dependencies.get("endpoint", []):
            endpoints.extend(endpoint.generated_spec or [])
        body = instance.config.config if isinstance(instance.config.config, dict) else {}
        return ServiceSpec(
            name=instance.instance_name,
            service_type=instance.class_type,
            endpoints=endpoints,
            config=dict(body),
        )

    def generate(self, instance) -> BuildResult:
        spec = self.compute_spec(instance)
        initializer_classes = [
            {"name": class_name, "instances": instance.recursive_dependencies[class_name]}
            for class_name in instance.dependency_order
        ]
        data = {
            "instance": instance,
            "spec": spec,
            "classes": initializer_classes,
            "package_name": instance.package_info.package_name,
        }
        files = {
            "main/main.go": self.render("service_main.jinja", data),
            "main/main_test.go": self.render("service_main_test.jinja", data),
            "service.go": self.render("service.jinja", data),
            "module/init.go": self.render("module_initializer.jinja", data),
        }
        files.update(self.dependencies_file(instance))
        return BuildResult(files=files, spec=spec)
