"""Workflow mocks for endpoints whose workflow is hand-written."""

from gateway_codegen.casing import camel_case
from gateway_codegen.errors import CodegenError
from gateway_codegen.hooks.base import HookResult, PostGenHook

CUSTOM_WORKFLOW = "custom"


def mock_clients(instance) -> list:
    """Template view of the clients a custom workflow can be wired with."""
    clients = []
    for client in instance.resolved_dependencies.get("client", []):
        info = client.package_info
        spec = client.generated_spec
        clients.append({
            "name": client.instance_name,
            "field_name": info.qualified_instance_name,
            "alias": camel_case(info.qualified_instance_name) + "ClientMock",
            "import_path": info.generated_package_path + "/mock-client",
            "has_fixture": getattr(spec, "fixture", None) is not None,
        })
    return clients


class WorkflowMockHook(PostGenHook):
    name = "workflow-mock"

    def __call__(self, modules) -> HookResult:
        endpoints = [
            instance for instance in modules.get("endpoint", [])
            if any(spec.workflow_type == CUSTOM_WORKFLOW for spec in instance.generated_spec or [])
        ]
        result = HookResult()
        for position, instance in enumerate(endpoints, start=1):
            try:
                result.files.update(self._generate(instance))
            except CodegenError as exc:
                result.failures.append(
                    exc.wrap(f"Error generating workflow mocks for endpoint {instance.instance_name}")
                )
                continue
            self.log_progress(instance, "mock-workflow", position, len(endpoints))
        return result

    def _generate(self, instance) -> dict:
        build_dir = self.build_dir(instance) / "mock-workflow"
        clients = mock_clients(instance)
        files = {}
        for spec in instance.generated_spec:
            if spec.workflow_type != CUSTOM_WORKFLOW:
                continue
            data = {
                "instance": instance,
                "package_name": "mock" + instance.package_info.package_name.lower(),
                "spec": spec,
                "clients": clients,
            }
            file_name = f"{spec.thrift_service_name}_{spec.thrift_method_name}.go".lower()
            files[str(build_dir / file_name)] = self.render("workflow_mock.jinja", data)

        files[str(build_dir / "type.go")] = self.render(
            "workflow_mock_clients_types.jinja",
            {
                "instance": instance,
                "package_name": "mock" + instance.package_info.package_name.lower(),
                "clients": clients,
            },
        )
        return files
