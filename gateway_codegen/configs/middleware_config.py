"""
Middleware config sub-loader.

A middleware instance names its handler import path and a JSON schema that
describes the options endpoints may pass to it. Endpoint option blocks are
checked against that schema with jsonschema.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gateway_codegen.configs.class_config import (
    ClassConfig,
    format_validation_error,
    load_class_config,
    parse_document,
)
from gateway_codegen.errors import ConfigError


class MiddlewareBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_file: str = Field(alias="schema", min_length=1)
    path: str = Field(min_length=1)
    options: Dict[str, Any] = Field(default_factory=dict)


class MiddlewareConfig(ClassConfig):
    config: MiddlewareBody


@dataclass
class MiddlewareSpec:
    """A parsed middleware together with its option schema."""

    name: str
    import_path: str
    schema_file: str
    schema: Dict[str, Any]
    config_file: str
    middleware_type: str = "http"
    default_options: Dict[str, Any] = field(default_factory=dict)

    def validate_options(self, options: Optional[Dict[str, Any]], owner: str = "") -> None:
        """Check an option block against the middleware schema."""
        try:
            jsonschema.validate(options or {}, self.schema)
        except jsonschema.ValidationError as exc:
            where = f" for {owner}" if owner else ""
            raise ConfigError(
                f'invalid options for middleware "{self.name}"{where}: {exc.message}'
            ) from exc
        except jsonschema.SchemaError as exc:
            raise ConfigError(
                f'invalid schema {self.schema_file} for middleware "{self.name}": {exc.message}'
            ) from exc


@dataclass
class MiddlewareRefSpec:
    """A middleware as attached to one endpoint, with its resolved options."""

    name: str
    spec: MiddlewareSpec
    options: Dict[str, Any] = field(default_factory=dict)


def _read_schema(schema_file: str, search_roots) -> tuple:
    for root in search_roots:
        candidate = Path(root) / schema_file
        if candidate.is_file():
            break
    else:
        raise ConfigError(f"Cannot read middleware schema file {schema_file}")

    try:
        text = candidate.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read middleware schema file {candidate}: {exc}") from exc
    try:
        if candidate.suffix == ".json":
            schema = json.loads(text)
        else:
            schema = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot parse middleware schema file {candidate}: {exc}") from exc
    if not isinstance(schema, dict):
        raise ConfigError(f"Middleware schema file {candidate} is not a mapping")
    return str(candidate), schema


def load_middleware_config(
    data: bytes,
    file_name: str,
    instance_dir,
    config_root,
) -> MiddlewareSpec:
    """
    Parse a middleware config and load its option schema.

    The schema path is looked up relative to the instance directory first and
    then relative to the config root.
    """
    load_class_config(data, file_name)
    document = parse_document(data, file_name)
    try:
        config = MiddlewareConfig.model_validate(document)
    except ValidationError as exc:
        raise ConfigError(
            f"Middleware config validation failed for {file_name}: "
            f"{format_validation_error(exc)}"
        ) from exc

    body = config.config
    schema_path, schema = _read_schema(body.schema_file, [instance_dir, config_root])
    spec = MiddlewareSpec(
        name=config.name,
        import_path=body.path,
        schema_file=schema_path,
        schema=schema,
        config_file=str(file_name),
        middleware_type=config.type,
        default_options=dict(body.options),
    )
    if body.options:
        spec.validate_options(body.options, owner=str(file_name))
    return spec
