"""
Endpoint config sub-loader.

An endpoint instance either carries one endpoint body under `config`, or a
list of per-method YAML files under `config.endpoints`; each such file is a
flat endpoint body.
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from gateway_codegen.configs.class_config import (
    format_validation_error,
    load_class_config,
    parse_document,
    read_config_file,
)
from gateway_codegen.errors import ConfigError

CLIENT_WORKFLOWS = ("httpClient", "tchannelClient")


class FieldMapperEntry(BaseModel):
    """Source of a converted field: a dotted path plus an override flag."""

    model_config = ConfigDict(populate_by_name=True)

    field: str = Field(min_length=1)
    override: bool = False


class MiddlewareRef(BaseModel):
    name: str = Field(min_length=1)
    options: Dict[str, Any] = Field(default_factory=dict)


class EndpointBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    endpoint_type: Literal["http", "tchannel"] = Field(alias="endpointType")
    endpoint_id: str = Field(alias="endpointId", min_length=1)
    handle_id: str = Field(alias="handleId", min_length=1)
    thrift_file: str = Field(alias="thriftFile", min_length=1)
    thrift_file_sha: str = Field(default="", alias="thriftFileSha")
    thrift_method_name: str = Field(alias="thriftMethodName", min_length=1)
    workflow_type: Literal["httpClient", "tchannelClient", "custom", "clientless"] = Field(
        alias="workflowType"
    )
    client_id: str = Field(default="", alias="clientId")
    client_method: str = Field(default="", alias="clientMethod")
    workflow_import_path: str = Field(default="", alias="workflowImportPath")
    test_fixtures: Optional[Dict[str, Any]] = Field(default=None, alias="testFixtures")
    middlewares: Optional[List[MiddlewareRef]] = None
    req_header_map: Dict[str, str] = Field(default_factory=dict, alias="reqHeaderMap")
    res_header_map: Dict[str, str] = Field(default_factory=dict, alias="resHeaderMap")
    req_transforms: Dict[str, FieldMapperEntry] = Field(default_factory=dict, alias="reqTransforms")
    resp_transforms: Dict[str, FieldMapperEntry] = Field(default_factory=dict, alias="respTransforms")
    dummy_req_transforms: Dict[str, FieldMapperEntry] = Field(
        default_factory=dict, alias="dummyReqTransforms"
    )
    err_transforms: Dict[str, FieldMapperEntry] = Field(default_factory=dict, alias="errTransforms")
    headers_propagate: Dict[str, FieldMapperEntry] = Field(
        default_factory=dict, alias="headersPropagate"
    )
    deputy_req_header: str = Field(default="", alias="deputyReqHeader")

    @model_validator(mode="before")
    @classmethod
    def _null_maps(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("reqHeaderMap", "resHeaderMap", "reqTransforms", "respTransforms",
                        "dummyReqTransforms", "errTransforms", "headersPropagate"):
                if key in data and data[key] is None:
                    data[key] = {}
        return data

    @model_validator(mode="after")
    def _workflow_fields(self):
        if self.workflow_type in CLIENT_WORKFLOWS:
            if not self.client_id:
                raise ValueError(f"clientId is required for workflowType {self.workflow_type}")
            if not self.client_method:
                raise ValueError(f"clientMethod is required for workflowType {self.workflow_type}")
        elif self.workflow_type == "custom" and not self.workflow_import_path:
            raise ValueError("workflowImportPath is required for workflowType custom")

        if self.endpoint_type == "http":
            if self.test_fixtures is None:
                raise ValueError("testFixtures is required for http endpoints")
            if self.middlewares is None:
                raise ValueError("middlewares is required for http endpoints")
        return self

    def thrift_service_method(self) -> Tuple[str, str]:
        """Split `Service::method`."""
        parts = self.thrift_method_name.split("::")
        if len(parts) != 2 or not all(parts):
            raise ConfigError(f'Cannot read thriftMethodName "{self.thrift_method_name}"')
        return parts[0], parts[1]


def load_endpoint_body(document: dict, file_name: str) -> EndpointBody:
    try:
        body = EndpointBody.model_validate(document)
    except ValidationError as exc:
        raise ConfigError(
            f"Endpoint config validation failed for {file_name}: {format_validation_error(exc)}"
        ) from exc
    body.thrift_service_method()
    return body


def load_endpoint_configs(data: bytes, file_name: str, instance_dir) -> List[Tuple[str, EndpointBody]]:
    """
    Return `(yaml_file, body)` pairs for every endpoint declared by an
    endpoint instance config.
    """
    common = load_class_config(data, file_name)
    body = common.config
    if not isinstance(body, dict):
        raise ConfigError(f"Endpoint config validation failed for {file_name}: config: Field required")

    if "endpoints" not in body:
        return [(str(file_name), load_endpoint_body(body, file_name))]

    endpoint_files = body.get("endpoints") or []
    if not isinstance(endpoint_files, list):
        raise ConfigError(f"Endpoint config validation failed for {file_name}: config.endpoints: must be a list")

    results = []
    for relative in endpoint_files:
        path = Path(instance_dir) / str(relative)
        document = parse_document(read_config_file(path), str(path))
        results.append((str(path), load_endpoint_body(document, str(path))))
    return results
