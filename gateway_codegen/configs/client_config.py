"""
Client config sub-loader.

A client config is a ClassConfig whose `type` selects the body model:
http, tchannel and grpc clients point at an IDL file and expose a subset of
its methods, custom clients point at a hand-written package.
"""

from collections import Counter
from typing import Dict, Optional, Type

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from gateway_codegen.configs.class_config import (
    ClassConfig,
    format_validation_error,
    load_class_config,
    parse_document,
)
from gateway_codegen.configs.fixture import Fixture
from gateway_codegen.errors import ConfigError


class IDLClientBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    idl_file: str = Field(
        validation_alias=AliasChoices("idlFile", "thriftFile", "idl_file"),
        min_length=1,
    )
    idl_file_sha: str = Field(
        default="",
        validation_alias=AliasChoices("idlFileSha", "thriftFileSha", "idl_file_sha"),
    )
    exposed_methods: Dict[str, str] = Field(alias="exposedMethods", min_length=1)
    sidecar_router: str = Field(default="", alias="sidecarRouter")
    custom_import_path: str = Field(default="", alias="customImportPath")
    custom_interface: str = Field(default="", alias="customInterface")
    fixture: Optional[Fixture] = None


class CustomClientBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    custom_import_path: str = Field(alias="customImportPath", min_length=1)
    custom_interface: str = Field(default="", alias="customInterface")
    fixture: Optional[Fixture] = None


class HTTPClientConfig(ClassConfig):
    config: IDLClientBody


class TChannelClientConfig(ClassConfig):
    config: IDLClientBody


class GRPCClientConfig(ClassConfig):
    config: IDLClientBody


class CustomClientConfig(ClassConfig):
    config: CustomClientBody


CLIENT_CONFIG_TYPES: Dict[str, Type[ClassConfig]] = {
    "http": HTTPClientConfig,
    "tchannel": TChannelClientConfig,
    "grpc": GRPCClientConfig,
    "custom": CustomClientConfig,
}

_KIND_LABELS = {
    "http": "HTTP",
    "tchannel": "TChannel",
    "grpc": "gRPC",
    "custom": "Custom",
}


def validate_exposed_methods(exposed_methods: Dict[str, str]) -> None:
    """Two exposed names must never point at the same IDL method."""
    counts = Counter(exposed_methods.values())
    for value in exposed_methods.values():
        if counts[value] > 1:
            raise ConfigError(f'value "{value}" of the exposedMethods is not unique')


def load_client_config(data: bytes, file_name: str) -> ClassConfig:
    """
    Parse a client config and validate its body for the declared type.

    Raises:
        ConfigError: unknown type, missing body fields, duplicate exposed
            method targets or an invalid fixture.
    """
    common = load_class_config(data, file_name)
    model = CLIENT_CONFIG_TYPES.get(common.type)
    if model is None:
        raise ConfigError(f'Unknown client type "{common.type}"')

    label = _KIND_LABELS[common.type]
    document = parse_document(data, file_name)
    try:
        config = model.model_validate(document)
    except ValidationError as exc:
        raise ConfigError(
            f"{label} client config validation failed: {format_validation_error(exc)}"
        ) from exc

    body = config.config
    if isinstance(body, IDLClientBody):
        validate_exposed_methods(body.exposed_methods)
    return config
