"""
Common shape of every on-disk module config (`<class>-config.yaml|json`).

The kind-specific body under `config` stays opaque here; the client, endpoint
and middleware sub-loaders validate it against their own models.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gateway_codegen.errors import BadConfig, GenIOError, ParseError


class ClassConfig(BaseModel):
    """Fields shared by client, endpoint, middleware and service configs."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    type: str = ""
    owner: str = ""
    is_export_generated: Optional[bool] = Field(default=None, alias="isExportGenerated")
    selective_building: bool = Field(default=False, alias="selectiveBuilding")
    dependencies: Dict[str, List[str]] = Field(default_factory=dict)
    config: Optional[Any] = None

    @field_validator("dependencies", mode="before")
    @classmethod
    def _null_dependencies(cls, value):
        return {} if value is None else value

    @field_validator("owner", mode="before")
    @classmethod
    def _null_owner(cls, value):
        return "" if value is None else value


def parse_document(data: bytes, file_name: str) -> dict:
    """
    Parse a YAML or JSON config document into a mapping.

    JSON files go through json.loads so that YAML-only syntax is rejected;
    everything else is read with yaml.safe_load.
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        if str(file_name).endswith(".json"):
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ParseError(f"Could not parse config data from {file_name}: {exc}") from exc

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ParseError(
            f"Could not parse config data from {file_name}: expected a mapping, "
            f"got {type(document).__name__}"
        )
    return document


def format_validation_error(exc: ValidationError) -> str:
    """Render pydantic errors as `loc.path: message` pairs joined by '; '."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def load_class_config(data: bytes, file_name: str) -> ClassConfig:
    """Parse and validate the common fields of a module config."""
    document = parse_document(data, file_name)
    try:
        config = ClassConfig.model_validate(document)
    except ValidationError as exc:
        raise BadConfig(
            f"Error reading config from {file_name}: {format_validation_error(exc)}"
        ) from exc

    if not config.name:
        raise BadConfig(f'Error reading instance name from "{file_name}"')
    if not config.type:
        raise BadConfig(f'Error reading instance type from "{file_name}"')
    return config


def read_config_file(path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise GenIOError(f"Error reading config file {path}: {exc}") from exc
