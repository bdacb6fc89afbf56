"""EndpointSpec: one endpoint method, its headers, middlewares and workflow."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from gateway_codegen.casing import lint_acronym
from gateway_codegen.configs import EndpointBody, FieldMapperEntry, MiddlewareRefSpec, load_endpoint_configs
from gateway_codegen.errors import ConfigError, IDLError, SkipCodeGen
from gateway_codegen.spec.headers import REQ_METADATA, RES_METADATA, TypedHeader, canonical_header_key, resolve_headers
from gateway_codegen.spec.module_spec import MethodSpec, ModuleSpec, new_module_spec


@dataclass
class EndpointSpec:
    module_spec: ModuleSpec
    yaml_file: str
    go_folder: str
    go_package_name: str
    endpoint_type: str
    endpoint_id: str
    handle_id: str
    thrift_file: str
    thrift_service_name: str
    thrift_method_name: str
    workflow_type: str
    workflow_import_path: str = ""
    client_id: str = ""
    client_method: str = ""
    test_fixtures: Dict[str, Any] = field(default_factory=dict)
    middlewares: List[MiddlewareRefSpec] = field(default_factory=list)
    req_header_map: Dict[str, TypedHeader] = field(default_factory=dict)
    res_header_map: Dict[str, TypedHeader] = field(default_factory=dict)
    req_transforms: Dict[str, FieldMapperEntry] = field(default_factory=dict)
    resp_transforms: Dict[str, FieldMapperEntry] = field(default_factory=dict)
    dummy_req_transforms: Dict[str, FieldMapperEntry] = field(default_factory=dict)
    err_transforms: Dict[str, FieldMapperEntry] = field(default_factory=dict)
    headers_propagate: Dict[str, FieldMapperEntry] = field(default_factory=dict)
    deputy_req_header: str = ""
    client_spec: Optional[object] = None
    request_converter: Optional[object] = None
    response_converter: Optional[object] = None
    dummy_converter: Optional[object] = None
    header_propagations: list = field(default_factory=list)
    error_mappings: list = field(default_factory=list)

    @property
    def method(self) -> MethodSpec:
        return self.module_spec.find_method(self.thrift_service_name, self.thrift_method_name)

    @property
    def handler_name(self) -> str:
        return lint_acronym(f"{_upper_first(self.endpoint_id)}{_upper_first(self.handle_id)}Handler")

    @property
    def handler_file_name(self) -> str:
        return (
            f"{self.endpoint_id}_{self.thrift_service_name}_method_{self.thrift_method_name}.go"
        ).lower()

    @property
    def uses_client(self) -> bool:
        return self.workflow_type in ("httpClient", "tchannelClient")


def new_endpoint_specs(instance, helper, loader=None) -> List[EndpointSpec]:
    """
    Build the EndpointSpecs declared by an endpoint instance.

    Raises:
        ConfigError: invalid endpoint body or unknown middleware.
        SkipCodeGen: the endpoint IDL file does not exist.
        IDLError: the IDL fails to parse, lacks the method or its annotations.
        BindingError: a header transform names an unknown header.
    """
    instance_dir = Path(instance.base_directory) / instance.directory
    go_folder = str(Path(instance.target_gen_dir) / instance.directory) if instance.target_gen_dir else ""
    specs = []
    for yaml_file, body in load_endpoint_configs(
        instance.yaml_file_bytes, instance.yaml_file_name, instance_dir
    ):
        specs.append(_endpoint_spec(yaml_file, body, instance, helper, loader, go_folder))
    return specs


def _endpoint_spec(yaml_file: str, body: EndpointBody, instance, helper, loader, go_folder) -> EndpointSpec:
    idl_file = helper.idl_file("endpoint", body.thrift_file)
    if not idl_file.is_file():
        raise SkipCodeGen(str(idl_file))
    helper.check_extension(idl_file, ".thrift")

    module_spec = new_module_spec(idl_file, True, True, helper, loader)
    service_name, method_name = body.thrift_service_method()
    method = module_spec.find_method(service_name, method_name)
    if method is None:
        raise ConfigError(
            f"Endpoint {body.endpoint_id}.{body.handle_id} refers to {body.thrift_method_name} "
            f"which is not defined in {idl_file}"
        )
    if body.endpoint_type == "http" and not (method.http_method and method.http_path):
        raise IDLError(
            f"Method {body.thrift_method_name} in {idl_file} needs http.method and http.path "
            "annotations to be used by an http endpoint"
        )

    compiled_module = module_spec.compiled
    req_headers = resolve_headers(compiled_module, method.compiled, REQ_METADATA, body.req_header_map)
    res_headers = resolve_headers(compiled_module, method.compiled, RES_METADATA, body.res_header_map)

    return EndpointSpec(
        module_spec=module_spec,
        yaml_file=yaml_file,
        go_folder=go_folder,
        go_package_name=instance.package_info.generated_package_path,
        endpoint_type=body.endpoint_type,
        endpoint_id=body.endpoint_id,
        handle_id=body.handle_id,
        thrift_file=str(idl_file),
        thrift_service_name=service_name,
        thrift_method_name=method_name,
        workflow_type=body.workflow_type,
        workflow_import_path=body.workflow_import_path,
        client_id=body.client_id,
        client_method=body.client_method,
        test_fixtures=dict(body.test_fixtures or {}),
        middlewares=helper.resolve_middlewares(body.endpoint_type, body.middlewares or [], owner=yaml_file),
        req_header_map=req_headers,
        res_header_map=res_headers,
        req_transforms=dict(body.req_transforms),
        resp_transforms=dict(body.resp_transforms),
        dummy_req_transforms=dict(body.dummy_req_transforms),
        err_transforms=dict(body.err_transforms),
        headers_propagate=dict(body.headers_propagate),
        deputy_req_header=canonical_header_key(body.deputy_req_header) or helper.deputy_req_header,
    )


def _upper_first(word: str) -> str:
    return word[:1].upper() + word[1:]
