"""
Gateway wiring for the code generation engine.

Steps
-----
1. Build a PackageHelper from PackageHelperOptions.
2. Register the module classes: client, middleware, endpoint, service.
3. Register one generator per (class, type).
4. Register the mock hooks when an interface reflector is available.
5. Drive full or incremental builds through a BuildOrchestrator.
"""

from typing import Dict, Iterable, List, Optional

from gateway_codegen.gen_logging import get_logger
from gateway_codegen.generators import (
    ClientGenerator,
    CustomClientGenerator,
    EndpointGenerator,
    MiddlewareGenerator,
    ServiceGenerator,
)
from gateway_codegen.hooks import (
    ClientMockHook,
    InterfaceReflector,
    ServiceMockHook,
    WorkflowMockHook,
)
from gateway_codegen.idl import ThriftLoader
from gateway_codegen.module import (
    BuildOrchestrator,
    FileWriter,
    ModuleClass,
    ModuleDependency,
    ModuleSystem,
)
from gateway_codegen.package_helper import PackageHelper, PackageHelperOptions
from gateway_codegen.template import Template

logger = get_logger(__name__)

# --------------------------------------------------------------------------- #
# 1) module classes and where their instances live                            #
# --------------------------------------------------------------------------- #
DEFAULT_MODULE_SEARCH_PATHS: Dict[str, List[str]] = {
    "client": ["clients/*"],
    "middleware": ["middlewares/*"],
    "endpoint": ["endpoints/*", "endpoints/tchannel/*"],
    "service": ["services/*"],
}

DEFAULT_CLASSES = [
    ModuleClass(name="client", name_plural="clients"),
    ModuleClass(name="middleware", name_plural="middlewares", depends_on=["client"]),
    ModuleClass(name="endpoint", name_plural="endpoints", depends_on=["client", "middleware"]),
    ModuleClass(name="service", name_plural="services", depends_on=["endpoint"]),
]


# --------------------------------------------------------------------------- #
# 2) factory                                                                  #
# --------------------------------------------------------------------------- #
def new_module_system(
    helper: PackageHelper,
    template: Optional[Template] = None,
    reflector: Optional[InterfaceReflector] = None,
    loader: Optional[ThriftLoader] = None,
    module_search_paths: Optional[Dict[str, List[str]]] = None,
    default_dependencies: Optional[Dict[str, List[str]]] = None,
    mock_hooks: bool = True,
) -> ModuleSystem:
    """
    Build a ModuleSystem with the gateway classes, generators and hooks.

    The client-mock hook needs a reflector; without one only the service and
    workflow mock hooks are registered.
    """
    template = template or Template()
    loader = loader or ThriftLoader()

    system = ModuleSystem(
        module_search_paths or DEFAULT_MODULE_SEARCH_PATHS,
        default_dependencies,
    )
    for module_class in DEFAULT_CLASSES:
        system.register_class(ModuleClass(
            name=module_class.name,
            name_plural=module_class.name_plural,
            depends_on=list(module_class.depends_on),
            depended_by=list(module_class.depended_by),
        ))

    client = ClientGenerator(template, helper, loader)
    for class_type in ("http", "tchannel", "grpc"):
        system.register_class_type("client", class_type, client)
    system.register_class_type("client", "custom", CustomClientGenerator(template, helper, loader))

    middleware = MiddlewareGenerator(template, helper, loader)
    for class_type in ("default", "http", "tchannel"):
        system.register_class_type("middleware", class_type, middleware)

    endpoint = EndpointGenerator(template, helper, loader)
    for class_type in ("http", "tchannel"):
        system.register_class_type("endpoint", class_type, endpoint)

    system.register_class_type("service", "gateway", ServiceGenerator(template, helper, loader))

    if mock_hooks:
        if reflector is not None:
            system.add_post_gen_hook(ClientMockHook.name, ClientMockHook(template, helper, reflector))
        else:
            logger.debug("No interface reflector configured; client mocks are disabled")
        system.add_post_gen_hook(ServiceMockHook.name, ServiceMockHook(template, helper))
        system.add_post_gen_hook(WorkflowMockHook.name, WorkflowMockHook(template, helper))

    system.resolve_class_order()
    return system


# --------------------------------------------------------------------------- #
# 3) public entry-points                                                      #
# --------------------------------------------------------------------------- #
class Gateway:
    """
    A configured gateway project: helper, module system and orchestrator.

    Args:
        options: package layout and naming options.
        reflector: enables the client-mock hook.
        formatter_command: run on every generated source file, e.g. ["gofmt", "-w"].
    """

    def __init__(self, options: PackageHelperOptions,
                 reflector: Optional[InterfaceReflector] = None,
                 formatter_command: Optional[List[str]] = None,
                 mock_hooks: bool = True,
                 default_dependencies: Optional[Dict[str, List[str]]] = None):
        self.helper = PackageHelper(options)
        self.template = Template()
        self.system = new_module_system(
            self.helper,
            self.template,
            reflector=reflector,
            default_dependencies=default_dependencies,
            mock_hooks=mock_hooks,
        )
        self.orchestrator = BuildOrchestrator(self.system, FileWriter(formatter_command))

    def resolve(self):
        return self.system.resolve_modules(
            str(self.helper.config_root),
            str(self.helper.target_gen_dir),
            self.helper.package_root,
        )

    def generate_all(self, commit_change: bool = True):
        """Full build of every discovered module."""
        logger.info("Generating all modules from %s", self.helper.config_root)
        return self.orchestrator.full_build(
            str(self.helper.config_root),
            str(self.helper.target_gen_dir),
            self.helper.package_root,
            commit_change=commit_change,
        )

    def generate_changed(self, changed: Iterable[ModuleDependency], commit_change: bool = True):
        """Incremental build of `changed` and every module depending on them."""
        resolved = self.resolve()
        return self.orchestrator.incremental_build(
            str(self.helper.target_gen_dir),
            resolved,
            list(changed),
            commit_change=commit_change,
        )
