"""
Proto loader: parses .proto files with textX and keeps the parts the
generators need (package, imports, services and their RPCs).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from textx.exceptions import TextXError

from gateway_codegen.errors import IDLError, SkipCodeGen
from gateway_codegen.idl.metamodels import grammar_metamodel


def get_metamodel():
    return grammar_metamodel("proto")


@dataclass(eq=False)
class ProtoRPC:
    name: str
    request_type: str
    response_type: str
    request_stream: bool = False
    response_stream: bool = False


@dataclass(eq=False)
class ProtoService:
    name: str
    rpcs: List[ProtoRPC] = field(default_factory=list)


@dataclass(eq=False)
class ProtoModule:
    path: str
    syntax: str = "proto2"
    package: str = ""
    imports: List[str] = field(default_factory=list)
    options: Dict[str, str] = field(default_factory=dict)
    services: List[ProtoService] = field(default_factory=list)

    @property
    def name(self) -> str:
        return Path(self.path).stem


def load_proto(path) -> ProtoModule:
    """
    Parse a .proto file.

    Raises:
        SkipCodeGen: the file does not exist.
        IDLError: the file does not parse.
    """
    if not Path(path).is_file():
        raise SkipCodeGen(str(path))
    try:
        document = get_metamodel().model_from_file(str(path))
    except TextXError as exc:
        raise IDLError(f"could not parse proto file {path}: {exc}") from exc

    module = ProtoModule(path=str(Path(path).resolve()))
    for statement in document.statements:
        kind = type(statement).__name__
        if kind == "Syntax":
            module.syntax = statement.value
        elif kind == "PackageStatement":
            module.package = statement.name
        elif kind == "ImportStatement":
            module.imports.append(statement.path)
        elif kind == "Option" and isinstance(statement.value, str):
            module.options[statement.name] = statement.value
        elif kind == "Service":
            module.services.append(ProtoService(
                name=statement.name,
                rpcs=[
                    ProtoRPC(
                        name=element.name,
                        request_type=element.request,
                        response_type=element.response,
                        request_stream=bool(element.request_stream),
                        response_stream=bool(element.response_stream),
                    )
                    for element in statement.elements
                    if type(element).__name__ == "Rpc"
                ],
            ))
    return module
