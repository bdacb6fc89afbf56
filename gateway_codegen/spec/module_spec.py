"""
Language-neutral description of an IDL file: services, methods, HTTP
annotations, exceptions and the packages the generated code must import.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from gateway_codegen.errors import ConfigError, IDLError
from gateway_codegen.gen_logging import get_logger
from gateway_codegen.idl import ThriftLoader, load_proto
from gateway_codegen.spec.headers import annotation_with_suffix

logger = get_logger(__name__)

HTTP_METHOD = "http.method"
HTTP_PATH = "http.path"
HTTP_STATUS = "http.status"
HTTP_REQ_HEADERS = "http.reqHeaders"
HTTP_RES_HEADERS = "http.resHeaders"
HANDLER = "handler"

_EXTENSIONS = (".thrift", ".proto")


@dataclass
class PackageImport:
    import_path: str
    package_name: str


@dataclass
class ExceptionSpec:
    name: str
    type_name: str
    status_code: Optional[int] = None


@dataclass
class MethodSpec:
    name: str
    service_name: str
    compiled: object
    request_type: str = ""
    response_type: str = ""
    http_method: str = ""
    http_path: str = ""
    ok_status_code: int = 200
    handler: str = ""
    req_headers: List[str] = field(default_factory=list)
    res_headers: List[str] = field(default_factory=list)
    exceptions: List[ExceptionSpec] = field(default_factory=list)
    exceptions_index: Dict[str, ExceptionSpec] = field(default_factory=dict)
    downstream_service: str = ""
    downstream_method: Optional["MethodSpec"] = None

    @property
    def thrift_name(self) -> str:
        return f"{self.service_name}::{self.name}"

    @property
    def args(self) -> list:
        return list(getattr(self.compiled, "args", []) or [])


@dataclass
class ServiceSpec:
    name: str
    methods: List[MethodSpec] = field(default_factory=list)

    def method(self, name: str) -> Optional[MethodSpec]:
        for method in self.methods:
            if method.name == name:
                return method
        return None


@dataclass
class ModuleSpec:
    thrift_file: str
    with_annotations: bool
    is_endpoint: bool
    package_name: str
    import_path: str
    compiled: object
    services: List[ServiceSpec] = field(default_factory=list)
    included_packages: List[PackageImport] = field(default_factory=list)

    def find_service(self, name: str) -> Optional[ServiceSpec]:
        for service in self.services:
            if service.name == name:
                return service
        return None

    def find_method(self, service_name: str, method_name: str) -> Optional[MethodSpec]:
        service = self.find_service(service_name)
        return service.method(method_name) if service else None

    def add_included_package(self, import_path: str, package_name: str) -> None:
        """Add an import, keeping the list deduplicated and sorted by path."""
        if any(item.import_path == import_path for item in self.included_packages):
            return
        self.included_packages.append(PackageImport(import_path, package_name))
        self.included_packages.sort(key=lambda item: item.import_path)


def new_module_spec(idl_file, with_annotations: bool, is_endpoint: bool, helper, loader: ThriftLoader = None) -> ModuleSpec:
    """
    Build the ModuleSpec of a Thrift or Proto file.

    Raises:
        SkipCodeGen: the file does not exist.
        IDLError: the file fails to parse or link.
        ConfigError: the file lies outside the IDL root or has an unknown extension.
    """
    suffix = Path(idl_file).suffix
    if suffix not in _EXTENSIONS:
        raise ConfigError(f"file {idl_file} is not a .thrift or .proto file")
    if suffix == ".proto":
        return _proto_module_spec(idl_file, with_annotations, is_endpoint, helper)
    return _thrift_module_spec(idl_file, with_annotations, is_endpoint, helper, loader or ThriftLoader())


def _thrift_module_spec(idl_file, with_annotations, is_endpoint, helper, loader) -> ModuleSpec:
    compiled = loader.load(idl_file)
    spec = ModuleSpec(
        thrift_file=str(idl_file),
        with_annotations=with_annotations,
        is_endpoint=is_endpoint,
        package_name=helper.type_package_name(compiled.path),
        import_path=helper.type_import_path(compiled.path),
        compiled=compiled,
    )

    for included in compiled.transitive_includes():
        spec.add_included_package(
            helper.type_import_path(included.path),
            helper.type_package_name(included.path),
        )

    for name in sorted(compiled.services):
        service = compiled.services[name]
        functions = service.all_functions()
        spec.services.append(ServiceSpec(
            name=name,
            methods=[
                _thrift_method_spec(functions[function_name], name, spec, helper)
                for function_name in sorted(functions)
            ],
        ))
    return spec


def _thrift_method_spec(function, service_name: str, spec: ModuleSpec, helper) -> MethodSpec:
    method = MethodSpec(
        name=function.name,
        service_name=service_name,
        compiled=function,
        request_type=f"{service_name}_{function.name}_Args",
        response_type=_type_name(function.return_type, spec, helper),
    )

    for item in function.exceptions:
        status = None
        if spec.with_annotations:
            status = _status(annotation_with_suffix(item.annotations, HTTP_STATUS), function.name)
        exception = ExceptionSpec(
            name=item.name,
            type_name=_type_name(item.type, spec, helper),
            status_code=status,
        )
        method.exceptions.append(exception)
        method.exceptions_index[item.name] = exception

    if not spec.with_annotations:
        return method

    annotations = function.annotations
    method.http_method = (annotation_with_suffix(annotations, HTTP_METHOD) or "").upper()
    method.http_path = annotation_with_suffix(annotations, HTTP_PATH) or ""
    method.handler = annotation_with_suffix(annotations, HANDLER) or ""
    status = annotation_with_suffix(annotations, HTTP_STATUS)
    if status is not None:
        method.ok_status_code = _status(status, function.name)
    method.req_headers = _header_list(annotation_with_suffix(annotations, HTTP_REQ_HEADERS))
    method.res_headers = _header_list(annotation_with_suffix(annotations, HTTP_RES_HEADERS))
    return method


def _type_name(thrift_type, spec: ModuleSpec, helper) -> str:
    if thrift_type is None:
        return ""
    owner = getattr(thrift_type, "module", None)
    if owner is None or owner is spec.compiled:
        return thrift_type.name
    return f"{helper.type_package_name(owner.path)}.{thrift_type.name}"


def _status(value: Optional[str], method_name: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise IDLError(f'invalid http.status "{value}" on {method_name}') from None


def _header_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [header.strip() for header in value.split(",") if header.strip()]


def _proto_module_spec(idl_file, with_annotations, is_endpoint, helper) -> ModuleSpec:
    compiled = load_proto(idl_file)
    spec = ModuleSpec(
        thrift_file=str(idl_file),
        with_annotations=with_annotations,
        is_endpoint=is_endpoint,
        package_name=helper.type_package_name(compiled.path),
        import_path=helper.type_import_path(compiled.path),
        compiled=compiled,
    )

    for imported in compiled.imports:
        candidate = helper.idl_root / imported
        if candidate.suffix == ".proto" and candidate.is_file():
            spec.add_included_package(
                helper.type_import_path(candidate),
                helper.type_package_name(candidate),
            )
        else:
            logger.debug("Skipping import %s of %s: not under the idl root", imported, idl_file)

    for service in sorted(compiled.services, key=lambda item: item.name):
        spec.services.append(ServiceSpec(
            name=service.name,
            methods=[
                MethodSpec(
                    name=rpc.name,
                    service_name=service.name,
                    compiled=rpc,
                    request_type=rpc.request_type,
                    response_type=rpc.response_type,
                )
                for rpc in sorted(service.rpcs, key=lambda item: item.name)
            ],
        ))
    return spec
