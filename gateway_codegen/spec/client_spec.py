"""ClientSpec: everything a client generator and its dependents need."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from gateway_codegen.configs import CustomClientBody, Fixture, load_client_config
from gateway_codegen.errors import SkipCodeGen
from gateway_codegen.gen_logging import get_logger
from gateway_codegen.spec.module_spec import MethodSpec, ModuleSpec, new_module_spec

logger = get_logger(__name__)


@dataclass
class ClientSpec:
    module_spec: Optional[ModuleSpec]
    yaml_file: str
    client_type: str
    import_path: str
    import_alias: str
    export_name: str
    export_type: str
    thrift_file: str
    client_id: str
    client_name: str
    exposed_methods: Dict[str, str] = field(default_factory=dict)
    sidecar_router: str = ""
    custom_import_path: str = ""
    custom_interface: str = ""
    idl_file_sha: str = ""
    fixture: Optional[Fixture] = None

    @property
    def is_custom(self) -> bool:
        return self.client_type == "custom"

    def exposed_method_specs(self) -> List[Tuple[str, MethodSpec]]:
        """
        `(exposed_name, method)` pairs sorted by exposed name. Exposed
        methods that the IDL does not define are left out.
        """
        if self.module_spec is None:
            return []
        pairs = []
        for exposed in sorted(self.exposed_methods):
            target = self.exposed_methods[exposed]
            service_name, _, method_name = target.partition("::")
            method = self.module_spec.find_method(service_name, method_name)
            if method is None:
                logger.debug(
                    "Client %s exposes %s as %s but the IDL does not define it",
                    self.client_id, target, exposed,
                )
                continue
            pairs.append((exposed, method))
        return pairs


def new_client_spec(instance, helper, loader=None) -> ClientSpec:
    """
    Build the ClientSpec of a client instance.

    Raises:
        ConfigError: the client config does not validate.
        SkipCodeGen: the referenced IDL file does not exist.
        IDLError: the IDL does not parse.
    """
    config = load_client_config(instance.yaml_file_bytes, instance.yaml_file_name)
    body = config.config
    info = instance.package_info

    spec = ClientSpec(
        module_spec=None,
        yaml_file=instance.yaml_file_name,
        client_type=config.type,
        import_path=info.import_package_path(),
        import_alias=info.import_package_alias(),
        export_name=info.export_name,
        export_type=info.export_type,
        thrift_file="",
        client_id=instance.instance_name,
        client_name=info.qualified_instance_name,
        custom_import_path=body.custom_import_path,
        custom_interface=body.custom_interface,
        fixture=body.fixture,
    )
    if isinstance(body, CustomClientBody):
        return spec

    idl_file = helper.idl_file(instance.class_name, body.idl_file)
    spec.thrift_file = str(idl_file)
    spec.idl_file_sha = body.idl_file_sha
    spec.exposed_methods = dict(body.exposed_methods)
    spec.sidecar_router = body.sidecar_router

    if not idl_file.is_file():
        raise SkipCodeGen(str(idl_file))
    if config.type == "grpc":
        helper.check_extension(idl_file, ".proto")
    else:
        helper.check_extension(idl_file, ".thrift")

    module_spec = new_module_spec(idl_file, False, False, helper, loader)
    module_spec.package_name = module_spec.package_name + "client"
    spec.module_spec = module_spec
    return spec
