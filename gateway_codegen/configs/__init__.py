"""Config loading: the common ClassConfig plus per-kind sub-loaders."""

from .class_config import (
    ClassConfig,
    format_validation_error,
    load_class_config,
    parse_document,
    read_config_file,
)
from .client_config import (
    CLIENT_CONFIG_TYPES,
    CustomClientBody,
    IDLClientBody,
    load_client_config,
    validate_exposed_methods,
)
from .endpoint_config import (
    EndpointBody,
    FieldMapperEntry,
    MiddlewareRef,
    load_endpoint_body,
    load_endpoint_configs,
)
from .fixture import Fixture
from .middleware_config import (
    MiddlewareRefSpec,
    MiddlewareSpec,
    load_middleware_config,
)

__all__ = [
    "ClassConfig",
    "format_validation_error",
    "load_class_config",
    "parse_document",
    "read_config_file",
    "CLIENT_CONFIG_TYPES",
    "CustomClientBody",
    "IDLClientBody",
    "load_client_config",
    "validate_exposed_methods",
    "EndpointBody",
    "FieldMapperEntry",
    "MiddlewareRef",
    "load_endpoint_body",
    "load_endpoint_configs",
    "Fixture",
    "MiddlewareRefSpec",
    "MiddlewareSpec",
    "load_middleware_config",
]
