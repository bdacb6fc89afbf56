from .base import Generator
from .client import ClientGenerator, CustomClientGenerator
from .endpoint import EndpointGenerator
from .middleware import MiddlewareGenerator
from .service import ServiceGenerator, ServiceSpec

__all__ = [
    "ClientGenerator",
    "CustomClientGenerator",
    "EndpointGenerator",
    "Generator",
    "MiddlewareGenerator",
    "ServiceGenerator",
    "ServiceSpec",
]
