"""Service mocks: a module initializer whose leaf clients are mocks."""

from typing import Dict

from gateway_codegen.errors import CodegenError
from gateway_codegen.hooks.base import HookResult, PostGenHook


def leaf_clients_with_fixture(instance) -> Dict[str, str]:
    """Client instance name -> fixture import path, over all transitive clients."""
    leaves = {}
    for client in instance.recursive_dependencies.get("client", []):
        spec = client.generated_spec
        fixture = getattr(spec, "fixture", None)
        if fixture is not None:
            leaves[client.instance_name] = fixture.import_path
    return leaves


class ServiceMockHook(PostGenHook):
    name = "service-mock"

    def __call__(self, modules) -> HookResult:
        services = list(modules.get("service", []))
        result = HookResult()
        for position, instance in enumerate(services, start=1):
            try:
                self._generate(instance, result.files)
            except CodegenError as exc:
                result.failures.append(
                    exc.wrap(f"Error generating service mock for {instance.instance_name}")
                )
                continue
            self.log_progress(instance, "mock-service", position, len(services))
        return result

    def _generate(self, instance, files) -> None:
        data = {
            "instance": instance,
            "package_name": "mockservice",
            "leaf_with_fixture": leaf_clients_with_fixture(instance),
            "classes": [
                {"name": class_name, "instances": instance.recursive_dependencies[class_name]}
                for class_name in instance.dependency_order
            ],
        }
        build_dir = self.build_dir(instance) / "mock-service"
        # Render both before storing either so a failure leaves no half pair.
        mock_init = self.render("service_mock_init.jinja", data)
        mock_service = self.render("service_mock.jinja", data)
        files[str(build_dir / "mock_init.go")] = mock_init
        files[str(build_dir / "mock_service.go")] = mock_service
