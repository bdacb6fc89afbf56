"""Endpoint generator: one handler file per endpoint method plus the collection."""

from typing import List

from gateway_codegen.errors import CodegenError
from gateway_codegen.generators.base import Generator
from gateway_codegen.module.instance import BuildResult
from gateway_codegen.spec.downstream import set_downstream
from gateway_codegen.spec.endpoint_spec import EndpointSpec, new_endpoint_specs

_HANDLER_TEMPLATES = {
    "http": "endpoint.jinja",
    "tchannel": "tchannel_endpoint.jinja",
}


class EndpointGenerator(Generator):
    def compute_spec(self, instance) -> List[EndpointSpec]:
        clients = [
            client.generated_spec
            for client in instance.resolved_dependencies.get("client", [])
            if client.generated_spec is not None
        ]
        specs = new_endpoint_specs(instance, self.helper, self.loader)
        for spec in specs:
            try:
                set_downstream(spec, clients)
            except CodegenError as exc:
                raise exc.wrap(f"Error binding endpoint {spec.endpoint_id}.{spec.handle_id}") from exc
        return specs

    def generate(self, instance) -> BuildResult:
        specs = self.compute_spec(instance)
        files = {}
        for spec in specs:
            data = {
                "instance": instance,
                "spec": spec,
                "method": spec.method,
                "package_name": instance.package_info.package_name,
            }
            files[spec.handler_file_name] = self.render(_HANDLER_TEMPLATES[spec.endpoint_type], data)

        files["endpoint.go"] = self.render("endpoint_collection.jinja", {
            "instance": instance,
            "endpoints": specs,
            "package_name": instance.package_info.package_name,
        })
        files.update(self.dependencies_file(instance))
        return BuildResult(files=files, spec=specs)
