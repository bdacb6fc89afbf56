"""Client generators: http, tchannel and grpc clients, plus custom clients."""

from gateway_codegen.gen_logging import get_logger
from gateway_codegen.generators.base import Generator, base_name
from gateway_codegen.module.instance import BuildResult
from gateway_codegen.spec.client_spec import ClientSpec, new_client_spec

logger = get_logger(__name__)

_CLIENT_TEMPLATES = {
    "http": "http_client.jinja",
    "tchannel": "tchannel_client.jinja",
    "grpc": "grpc_client.jinja",
}


class ClientGenerator(Generator):
    """Generates the client package of an IDL-backed client."""

    def compute_spec(self, instance) -> ClientSpec:
        return new_client_spec(instance, self.helper, self.loader)

    def generate(self, instance) -> BuildResult:
        spec = self.compute_spec(instance)
        data = {
            "instance": instance,
            "spec": spec,
            "methods": spec.exposed_method_specs(),
            "package_name": instance.package_info.package_name,
        }
        files = {f"{base_name(instance)}.go": self.render(_CLIENT_TEMPLATES[spec.client_type], data)}
        files.update(self.dependencies_file(instance))
        return BuildResult(files=files, spec=spec)


class CustomClientGenerator(Generator):
    """Custom clients are hand-written; only their dependency struct is generated."""

    def compute_spec(self, instance) -> ClientSpec:
        return new_client_spec(instance, self.helper, self.loader)

    def generate(self, instance) -> BuildResult:
        spec = self.compute_spec(instance)
        return BuildResult(files=self.dependencies_file(instance), spec=spec)
