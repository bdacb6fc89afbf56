"""
Client mocks: one mock per client interface, plus fixture-aware mocks for
clients that declare a fixture.
"""

import posixpath
import re
import threading
from typing import Dict, List, Optional, Tuple

from gateway_codegen.casing import camel_case
from gateway_codegen.errors import CodegenError, ConfigError, GenIOError
from gateway_codegen.gen_logging import get_logger
from gateway_codegen.hooks.base import FileMap, HookResult, PostGenHook
from gateway_codegen.hooks.reflect import InterfaceReflector, MethodDescriptor
from gateway_codegen.module.parallel import POOL_FACTOR, bounded_pool_size, run_parallel

logger = get_logger(__name__)

CLIENT_INTERFACE = "Client"
MOCK_PACKAGE = "clientmock"

GO_KEYWORDS = frozenset([
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
])

# Reflected types name their package as `"import/path".Symbol`.
_QUALIFIED = re.compile(r'"([^"]+)"\.')


def interface_of(instance) -> Tuple[str, str]:
    """(import path, interface name) the mock of a client instance implements."""
    spec = instance.generated_spec
    if spec is not None and spec.is_custom:
        return spec.custom_import_path, spec.custom_interface or CLIENT_INTERFACE
    return instance.package_info.generated_package_path, CLIENT_INTERFACE


class ImportAliases:
    """Deterministic aliases for the packages referenced by reflected types."""

    def __init__(self, paths):
        self.aliases: Dict[str, str] = {}
        used = set()
        for path in sorted(set(paths)):
            base = camel_case(posixpath.basename(path).replace("-", "_").replace(".", "_"))
            alias = base
            suffix = 0
            while alias in used or alias in GO_KEYWORDS:
                alias = f"{base}{suffix}"
                suffix += 1
            self.aliases[path] = alias
            used.add(alias)

    @classmethod
    def for_methods(cls, methods: List[MethodDescriptor]) -> "ImportAliases":
        paths = []
        for method in methods:
            for type_name in _types_of(method):
                paths.extend(_QUALIFIED.findall(type_name))
        return cls(paths)

    def qualify(self, type_name: str) -> str:
        return _QUALIFIED.sub(lambda match: self.aliases[match.group(1)] + ".", type_name)

    def imports(self) -> List[Dict[str, str]]:
        return [{"path": path, "alias": alias} for path, alias in sorted(self.aliases.items())]


def _types_of(method: MethodDescriptor) -> List[str]:
    types = list(method.inputs) + list(method.outputs)
    if method.variadic:
        types.append(method.variadic)
    return types


def mock_methods(methods: List[MethodDescriptor], aliases: ImportAliases) -> List[dict]:
    """Template view of reflected methods with argN / retN names."""
    views = []
    for method in methods:
        params = [(f"arg{i}", aliases.qualify(type_name)) for i, type_name in enumerate(method.inputs)]
        if method.variadic:
            params.append((f"arg{len(params)}", "..." + aliases.qualify(method.variadic)))
        results = [(f"ret{i}", aliases.qualify(type_name)) for i, type_name in enumerate(method.outputs)]
        views.append({
            "name": method.name,
            "params": params,
            "results": results,
            "variadic": bool(method.variadic),
            "in_string": ", ".join(name for name, _ in params),
            "out_string": ", ".join(name for name, _ in results),
        })
    return views


class ClientMockHook(PostGenHook):
    """
    Reflect every client interface in one pass, then render the mocks on a
    bounded worker pool.
    """

    name = "client-mock"

    def __init__(self, template, helper, reflector: InterfaceReflector,
                 pool_factor: int = POOL_FACTOR):
        super().__init__(template, helper)
        self.reflector = reflector
        self.pool_factor = pool_factor
        self._progress_lock = threading.Lock()
        self._progress = 0

    def __call__(self, modules) -> HookResult:
        clients = list(modules.get("client", []))
        if not clients:
            return HookResult()

        pairs = {interface_of(instance) for instance in clients}
        try:
            interfaces = self.reflector.reflect(sorted(pairs))
        except CodegenError as exc:
            return HookResult(failures=[exc.wrap("error reflecting client interfaces")])

        files = FileMap()
        self._progress = 0
        outcomes = run_parallel(
            lambda instance: self._generate(instance, interfaces, files, len(clients)),
            clients,
            bounded_pool_size(self.pool_factor),
        )

        failures = []
        for instance, _, error in outcomes:
            if error is None:
                continue
            if isinstance(error, CodegenError):
                error = error.wrap(f'error generating mocks for client "{instance.instance_name}"')
            failures.append(error)
        return HookResult(files=files.snapshot(), failures=failures)

    def _generate(self, instance, interfaces, files: FileMap, total: int) -> None:
        import_path, symbol = interface_of(instance)
        methods = _lookup(interfaces, import_path, symbol)
        aliases = ImportAliases.for_methods(methods)
        build_dir = self.build_dir(instance) / "mock-client"

        data = {
            "instance": instance,
            "package_name": MOCK_PACKAGE,
            "interface": symbol,
            "interface_import_path": import_path,
            "imports": aliases.imports(),
            "methods": mock_methods(methods, aliases),
        }
        files.add(build_dir / "mock_client.go", self.render("client_mock.jinja", data))

        fixture = self._fixture(instance)
        if fixture is not None:
            by_name = {method.name: method for method in methods}
            try:
                fixture.validate_methods(by_name)
            except ConfigError as exc:
                raise exc.wrap(f'invalid fixture config for client "{instance.instance_name}"') from exc

            fixture_methods = [by_name[name] for name in sorted(fixture.scenarios)]
            fixture_aliases = ImportAliases.for_methods(fixture_methods)
            fixture_data = dict(
                data,
                imports=fixture_aliases.imports(),
                methods=mock_methods(fixture_methods, fixture_aliases),
                fixture=fixture,
            )
            files.add(build_dir / "types.go", self.render("client_fixture_types.jinja", fixture_data))
            files.add(
                build_dir / "mock_client_with_fixture.go",
                self.render("client_mock_with_fixture.jinja", fixture_data),
            )

        with self._progress_lock:
            self._progress += 1
            position = self._progress
        self.log_progress(instance, "mock-client", position, total)

    @staticmethod
    def _fixture(instance):
        spec = instance.generated_spec
        if spec is None or spec.fixture is None or not spec.fixture.scenarios:
            return None
        return spec.fixture


def _lookup(interfaces, import_path: str, symbol: str) -> List[MethodDescriptor]:
    methods: Optional[List[MethodDescriptor]] = interfaces.get(import_path, {}).get(symbol)
    if methods is None:
        raise GenIOError(f"interface {symbol} was not reflected from {import_path}")
    return methods
