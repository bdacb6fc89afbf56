"""
Thrift loader: parses .thrift files with textX and links them into a tree of
plain Python objects.

Type references are resolved across includes, services see the functions of
the services they extend, and every module keeps a reference to the modules
it includes. Trees are immutable once ThriftLoader.load returns, so a single
loader can be shared by generators running in parallel.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from textx.exceptions import TextXError

from gateway_codegen.errors import IDLError, SkipCodeGen
from gateway_codegen.gen_logging import get_logger
from gateway_codegen.idl.metamodels import grammar_metamodel

logger = get_logger(__name__)


def get_metamodel():
    return grammar_metamodel("thrift")


# ------------------------------------------------------------------------------
# Linked type tree

class ThriftType:
    """Base of every linked type."""

    name: str = ""
    module: Optional["ThriftModule"] = None

    def resolve(self) -> "ThriftType":
        """Follow typedefs down to the underlying type."""
        return self

    @property
    def is_struct(self) -> bool:
        return isinstance(self.resolve(), StructType)


@dataclass(eq=False)
class PrimitiveType(ThriftType):
    name: str
    annotations: Dict[str, str] = field(default_factory=dict)


@dataclass(eq=False)
class ListType(ThriftType):
    value_type: ThriftType
    annotations: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self):
        return f"list<{self.value_type.name}>"


@dataclass(eq=False)
class SetType(ThriftType):
    value_type: ThriftType
    annotations: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self):
        return f"set<{self.value_type.name}>"


@dataclass(eq=False)
class MapType(ThriftType):
    key_type: ThriftType
    value_type: ThriftType
    annotations: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self):
        return f"map<{self.key_type.name},{self.value_type.name}>"


@dataclass(eq=False)
class EnumType(ThriftType):
    name: str
    module: "ThriftModule"
    values: Dict[str, int] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)


@dataclass(eq=False)
class TypedefType(ThriftType):
    name: str
    module: "ThriftModule"
    target: Optional[ThriftType] = None
    annotations: Dict[str, str] = field(default_factory=dict)

    def resolve(self) -> ThriftType:
        seen = set()
        current = self
        while isinstance(current, TypedefType):
            if id(current) in seen:
                raise IDLError(f"typedef cycle through {self.name} in {self.module.path}")
            seen.add(id(current))
            current = current.target
        return current


@dataclass(eq=False)
class ThriftField:
    id: Optional[int]
    name: str
    type: ThriftType
    required: Optional[bool] = None
    default: Any = None
    annotations: Dict[str, str] = field(default_factory=dict)


@dataclass(eq=False)
class StructType(ThriftType):
    """struct, union or exception; `kind` tells which."""

    name: str
    module: "ThriftModule"
    kind: str = "struct"
    fields: List[ThriftField] = field(default_factory=list)
    annotations: Dict[str, str] = field(default_factory=dict)

    def field_named(self, name: str) -> Optional[ThriftField]:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None


@dataclass(eq=False)
class ThriftFunction:
    name: str
    service: "ThriftService"
    args: List[ThriftField] = field(default_factory=list)
    return_type: Optional[ThriftType] = None
    exceptions: List[ThriftField] = field(default_factory=list)
    annotations: Dict[str, str] = field(default_factory=dict)
    oneway: bool = False


@dataclass(eq=False)
class ThriftService:
    name: str
    module: "ThriftModule"
    functions: Dict[str, ThriftFunction] = field(default_factory=dict)
    parent: Optional["ThriftService"] = None
    annotations: Dict[str, str] = field(default_factory=dict)

    def all_functions(self) -> Dict[str, ThriftFunction]:
        """Own functions plus the ones inherited through `extends`."""
        inherited = self.parent.all_functions() if self.parent else {}
        inherited.update(self.functions)
        return inherited


@dataclass(eq=False)
class ThriftModule:
    name: str
    path: str
    includes: Dict[str, "ThriftModule"] = field(default_factory=dict)
    namespaces: Dict[str, str] = field(default_factory=dict)
    types: Dict[str, ThriftType] = field(default_factory=dict)
    services: Dict[str, ThriftService] = field(default_factory=dict)
    constants: Dict[str, Any] = field(default_factory=dict)

    def transitive_includes(self) -> List["ThriftModule"]:
        """Every module reachable through includes, excluding self, in path order."""
        seen = {}
        stack = list(self.includes.values())
        while stack:
            module = stack.pop()
            if module.path in seen or module is self:
                continue
            seen[module.path] = module
            stack.extend(module.includes.values())
        return [seen[path] for path in sorted(seen)]

    def find_module(self, name: str) -> Optional["ThriftModule"]:
        """Self or a transitively included module with the given name."""
        if name == self.name:
            return self
        if name in self.includes:
            return self.includes[name]
        for module in self.transitive_includes():
            if module.name == name:
                return module
        return None


# ------------------------------------------------------------------------------
# Loader

class ThriftLoader:
    """Parses and links Thrift files, caching every module by absolute path."""

    def __init__(self):
        self._modules: Dict[str, ThriftModule] = {}
        self._lock = threading.RLock()

    def load(self, path) -> ThriftModule:
        """
        Load and link a Thrift file and its includes.

        Raises:
            SkipCodeGen: the file does not exist.
            IDLError: the file or one of its includes fails to parse or link.
        """
        absolute = str(Path(path).resolve())
        if not Path(absolute).is_file():
            raise SkipCodeGen(str(path))
        with self._lock:
            return self._load(absolute, [])

    def _load(self, path: str, loading: List[str]) -> ThriftModule:
        if path in self._modules:
            return self._modules[path]
        if path in loading:
            cycle = " -> ".join(loading + [path])
            raise IDLError(f"include cycle detected: {cycle}")
        if not Path(path).is_file():
            raise IDLError(f"included thrift file {path} does not exist")

        try:
            document = get_metamodel().model_from_file(path)
        except TextXError as exc:
            raise IDLError(f"could not parse thrift file {path}: {exc}") from exc

        module = ThriftModule(name=Path(path).stem, path=path)
        for header in document.headers:
            kind = type(header).__name__
            if kind == "Include":
                included = self._load(
                    str((Path(path).parent / header.path).resolve()), loading + [path]
                )
                module.includes[included.name] = included
            elif kind == "Namespace":
                module.namespaces[header.scope] = header.name

        _Linker(module, document).link()
        self._modules[path] = module
        logger.debug("Loaded thrift module %s from %s", module.name, path)
        return module


class _Linker:
    """Turns one parsed textX document into the linked ThriftModule tree."""

    def __init__(self, module: ThriftModule, document):
        self.module = module
        self.document = document

    def link(self) -> None:
        definitions = self.document.definitions

        # Declare every named type first so references may point forward.
        for definition in definitions:
            kind = type(definition).__name__
            if kind in ("StructDef", "UnionDef", "ExceptionDef"):
                self._declare(definition.name, StructType(
                    name=definition.name,
                    module=self.module,
                    kind=kind[:-3].lower(),
                    annotations=_annotations(definition),
                ))
            elif kind == "EnumDef":
                self._declare(definition.name, EnumType(
                    name=definition.name,
                    module=self.module,
                    values=_enum_values(definition),
                    annotations=_annotations(definition),
                ))
            elif kind == "TypedefDef":
                self._declare(definition.name, TypedefType(
                    name=definition.name,
                    module=self.module,
                    annotations=_annotations(definition),
                ))

        for definition in definitions:
            kind = type(definition).__name__
            if kind in ("StructDef", "UnionDef", "ExceptionDef"):
                struct = self.module.types[definition.name]
                struct.fields = [self._field(item) for item in definition.fields]
            elif kind == "TypedefDef":
                self.module.types[definition.name].target = self._type(definition.type)
            elif kind == "ConstDef":
                self.module.constants[definition.name] = _const_value(definition.value)

        for definition in definitions:
            if type(definition).__name__ == "ServiceDef":
                if definition.name in self.module.services:
                    raise IDLError(
                        f"service {definition.name} is defined twice in {self.module.path}"
                    )
                self.module.services[definition.name] = ThriftService(
                    name=definition.name,
                    module=self.module,
                    annotations=_annotations(definition),
                )

        for definition in definitions:
            if type(definition).__name__ == "ServiceDef":
                self._service(definition)

    def _declare(self, name: str, value: ThriftType) -> None:
        if name in self.module.types:
            raise IDLError(f"type {name} is defined twice in {self.module.path}")
        self.module.types[name] = value

    def _service(self, definition) -> None:
        service = self.module.services[definition.name]
        if definition.extends:
            service.parent = self._lookup_service(definition.extends)
        for item in definition.functions:
            return_type = None
            if type(item.return_type).__name__ != "VoidType":
                return_type = self._type(item.return_type)
            service.functions[item.name] = ThriftFunction(
                name=item.name,
                service=service,
                args=[self._field(arg) for arg in item.args],
                return_type=return_type,
                exceptions=[self._field(exc) for exc in item.throws],
                annotations=_annotations(item),
                oneway=bool(item.oneway),
            )

    def _lookup_service(self, reference: str) -> ThriftService:
        owner, _, name = reference.rpartition(".")
        module = self.module if not owner else self.module.includes.get(owner)
        if module is None or name not in module.services:
            raise IDLError(f"unknown service {reference} in {self.module.path}")
        return module.services[name]

    def _field(self, item) -> ThriftField:
        required = None
        if item.requiredness:
            required = item.requiredness == "required"
        return ThriftField(
            id=_int(item.id) if item.id is not None else None,
            name=item.name,
            type=self._type(item.type),
            required=required,
            default=_const_value(item.default) if item.default is not None else None,
            annotations=_annotations(item),
        )

    def _type(self, node) -> ThriftType:
        kind = type(node).__name__
        annotations = _annotations(node)
        if kind == "BaseType":
            return PrimitiveType(name=node.name, annotations=annotations)
        if kind == "ListType":
            return ListType(value_type=self._type(node.elem), annotations=annotations)
        if kind == "SetType":
            return SetType(value_type=self._type(node.elem), annotations=annotations)
        if kind == "MapType":
            return MapType(
                key_type=self._type(node.key),
                value_type=self._type(node.value),
                annotations=annotations,
            )
        return self._lookup_type(node.name)

    def _lookup_type(self, reference: str) -> ThriftType:
        if reference in self.module.types:
            return self.module.types[reference]
        owner, _, name = reference.rpartition(".")
        included = self.module.includes.get(owner)
        if included is not None and name in included.types:
            return included.types[name]
        raise IDLError(f"unknown type {reference} in {self.module.path}")


def _annotations(node) -> Dict[str, str]:
    annotations = getattr(node, "annotations", None)
    if annotations is None:
        return {}
    return {item.key: item.value if item.value is not None else "" for item in annotations.items}


def _enum_values(definition) -> Dict[str, int]:
    values = {}
    next_value = 0
    for item in definition.values:
        if item.value is not None:
            next_value = _int(item.value)
        values[item.name] = next_value
        next_value += 1
    return values


def _int(text: str) -> int:
    sign = -1 if text.startswith("-") else 1
    digits = text.lstrip("+-")
    if digits.lower().startswith("0x"):
        return sign * int(digits, 16)
    return sign * int(digits, 10)


def _const_value(node):
    kind = type(node).__name__
    if kind == "ConstNumber":
        try:
            return _int(node.value)
        except ValueError:
            return float(node.value)
    if kind in ("ConstString", "ConstIdent"):
        return node.value
    if kind == "ConstList":
        return [_const_value(item) for item in node.items]
    if kind == "ConstMap":
        return {_const_value(entry.key): _const_value(entry.value) for entry in node.entries}
    return node
