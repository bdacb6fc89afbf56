"""
Package helper: paths, IDL package mapping and middleware catalogs.

Everything here is derived once from a PackageHelperOptions value at engine
construction and is read-only afterwards, so generators running in parallel
share a single helper.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from gateway_codegen.casing import camel_case
from gateway_codegen.configs import (
    format_validation_error,
    MiddlewareRef,
    MiddlewareRefSpec,
    MiddlewareSpec,
    load_middleware_config,
    parse_document,
    read_config_file,
)
from gateway_codegen.errors import ConfigError
from gateway_codegen.gen_logging import get_logger
from gateway_codegen.spec.headers import canonical_header_key

logger = get_logger(__name__)

MIDDLEWARE_CONFIG_NAMES = ("middleware-config.yaml", "middleware-config.json")


@dataclass
class PackageHelperOptions:
    package_root: str
    config_root: str
    rel_idl_dir: str = "idl"
    rel_target_gen_dir: str = "build"
    gen_code_package: Optional[Dict[str, str]] = None
    module_idl_subdir: Dict[str, str] = field(
        default_factory=lambda: {"endpoint": "endpoints-idl", "default": "clients-idl"}
    )
    copyright_header: str = ""
    build_tag: str = ""
    deputy_req_header: str = "x-deputy-forwarded"
    trace_key: str = "x-trace-id"
    default_forward_headers: List[str] = field(default_factory=list)
    middleware_config_dir: str = "middlewares"
    default_middleware_config: str = "middlewares/default.yaml"


class PackageHelper:
    """Resolves import paths and directory layout for one gateway project."""

    def __init__(self, options: PackageHelperOptions):
        if not options.package_root:
            raise ConfigError("package root must not be empty")
        if not options.config_root:
            raise ConfigError("config root must not be empty")

        self.options = options
        self.package_root = options.package_root.rstrip("/")
        self.config_root = Path(options.config_root).resolve()
        self.idl_root = (self.config_root / options.rel_idl_dir).resolve()
        self.target_gen_dir = (self.config_root / options.rel_target_gen_dir).resolve()

        default_gen_package = f"{self.package_root}/{options.rel_target_gen_dir}/gen-code"
        self.gen_code_package = dict(options.gen_code_package or {
            ".thrift": default_gen_package,
            ".proto": default_gen_package,
        })

        self.copyright_header = options.copyright_header
        self.build_tag = options.build_tag
        self.deputy_req_header = canonical_header_key(options.deputy_req_header)
        self.trace_key = canonical_header_key(options.trace_key)
        self.default_forward_headers = [
            canonical_header_key(header) for header in options.default_forward_headers
        ]

        self._middleware_specs = self._load_middleware_specs()
        self._default_middlewares = self._load_default_middlewares()

    # ------------------------------------------------------------------
    # Paths

    def code_gen_target_path(self) -> str:
        """Import path of the generated tree."""
        return f"{self.package_root}/{self.options.rel_target_gen_dir}"

    def idl_file(self, class_name: str, relative: str) -> Path:
        """Absolute path of an IDL file referenced from a config of class_name."""
        subdir = self.options.module_idl_subdir.get(
            class_name, self.options.module_idl_subdir.get("default", "")
        )
        return self.idl_root / subdir / relative

    def _idl_relative(self, idl_file) -> tuple:
        path = Path(idl_file)
        suffix = path.suffix
        if suffix not in self.gen_code_package:
            raise ConfigError(f"file {idl_file} has an unconfigured IDL extension {suffix!r}")
        try:
            relative = path.resolve().relative_to(self.idl_root)
        except ValueError:
            raise ConfigError(f"file {idl_file} is not in idl dir ({self.idl_root})") from None
        return suffix, relative.with_suffix("").as_posix()

    def type_import_path(self, idl_file) -> str:
        """Import path of the types generated for idl_file."""
        suffix, relative = self._idl_relative(idl_file)
        return f"{self.gen_code_package[suffix]}/{relative}"

    def type_package_name(self, idl_file) -> str:
        """Package name of the types generated for idl_file, `clients/bar/bar` -> `clientsBarBar`."""
        _, relative = self._idl_relative(idl_file)
        return camel_case(relative.replace("/", "_"))

    def check_extension(self, idl_file, expected: str) -> None:
        if Path(idl_file).suffix != expected:
            raise ConfigError(f"file {idl_file} is not {expected}")

    # ------------------------------------------------------------------
    # Middlewares

    def middleware_specs(self) -> Dict[str, MiddlewareSpec]:
        return dict(self._middleware_specs)

    def default_middleware_specs(self) -> Dict[str, List[MiddlewareRefSpec]]:
        return {kind: list(refs) for kind, refs in self._default_middlewares.items()}

    def resolve_middlewares(
        self,
        endpoint_type: str,
        refs: List[MiddlewareRef],
        owner: str,
    ) -> List[MiddlewareRefSpec]:
        """
        Default middlewares for endpoint_type followed by the endpoint's own
        list; an endpoint entry replaces a default of the same name in place.
        """
        explicit = []
        for ref in refs or []:
            spec = self._middleware_specs.get(ref.name)
            if spec is None:
                raise ConfigError(f"middlewares config ({ref.name}) not found.")
            options = dict(spec.default_options)
            options.update(ref.options)
            spec.validate_options(options, owner=owner)
            explicit.append(MiddlewareRefSpec(name=ref.name, spec=spec, options=options))

        by_name = {ref.name: ref for ref in explicit}
        resolved = []
        for default in self._default_middlewares.get(endpoint_type, []):
            resolved.append(by_name.pop(default.name, default))
        resolved.extend(ref for ref in explicit if ref.name in by_name)
        return resolved

    def _load_middleware_specs(self) -> Dict[str, MiddlewareSpec]:
        specs = {}
        root = self.config_root / self.options.middleware_config_dir
        if not root.is_dir():
            return specs
        for directory in sorted(path for path in root.iterdir() if path.is_dir()):
            config_file = next(
                (directory / name for name in MIDDLEWARE_CONFIG_NAMES if (directory / name).is_file()),
                None,
            )
            if config_file is None:
                continue
            spec = load_middleware_config(
                read_config_file(config_file), str(config_file), directory, self.config_root
            )
            if spec.name in specs:
                raise ConfigError(
                    f'middleware "{spec.name}" is defined by both {specs[spec.name].config_file} '
                    f"and {config_file}"
                )
            specs[spec.name] = spec
        logger.debug("Loaded %d middleware configs from %s", len(specs), root)
        return specs

    def _load_default_middlewares(self) -> Dict[str, List[MiddlewareRefSpec]]:
        path = self.config_root / self.options.default_middleware_config
        if not path.is_file():
            return {}

        document = parse_document(read_config_file(path), str(path))
        defaults = {}
        for endpoint_type, entries in document.items():
            refs = []
            for entry in entries or []:
                if isinstance(entry, str):
                    entry = {"name": entry}
                try:
                    ref = MiddlewareRef.model_validate(entry)
                except ValidationError as exc:
                    raise ConfigError(
                        f"Invalid default middleware entry in {path}: {format_validation_error(exc)}"
                    ) from exc
                spec = self._middleware_specs.get(ref.name)
                if spec is None:
                    raise ConfigError(
                        f"default middleware ({ref.name}) for {endpoint_type} endpoints not found."
                    )
                options = dict(spec.default_options)
                options.update(ref.options)
                spec.validate_options(options, owner=str(path))
                refs.append(MiddlewareRefSpec(name=ref.name, spec=spec, options=options))
            defaults[endpoint_type] = refs
        return defaults
