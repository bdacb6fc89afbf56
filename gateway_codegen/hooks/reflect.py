"""
Interface reflection for mock generation.

The client-mock hook needs the method set of interfaces that only exist in
the target project. A reflector answers, for a list of (import_path, symbol)
pairs, the ordered method descriptors of each symbol.
"""

import json
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from gateway_codegen.errors import GenIOError
from gateway_codegen.gen_logging import get_logger

logger = get_logger(__name__)

InterfaceMap = Dict[str, Dict[str, List["MethodDescriptor"]]]


@dataclass
class MethodDescriptor:
    name: str
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    variadic: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "MethodDescriptor":
        return cls(
            name=data["name"],
            inputs=list(data.get("inputs") or []),
            outputs=list(data.get("outputs") or []),
            variadic=data.get("variadic") or None,
        )


class InterfaceReflector:
    def reflect(self, pairs: Iterable[Tuple[str, str]]) -> InterfaceMap:
        raise NotImplementedError


class StaticReflector(InterfaceReflector):
    """Answers from a fixed table, keyed by (import_path, symbol)."""

    def __init__(self, interfaces: Dict[Tuple[str, str], List[MethodDescriptor]]):
        self.interfaces = dict(interfaces)

    def reflect(self, pairs) -> InterfaceMap:
        result: InterfaceMap = {}
        for import_path, symbol in pairs:
            methods = self.interfaces.get((import_path, symbol))
            if methods is None:
                raise GenIOError(f"cannot reflect {symbol} in {import_path}: unknown interface")
            result.setdefault(import_path, {})[symbol] = list(methods)
        return result


class SubprocessReflector(InterfaceReflector):
    """
    Runs an external program once per reflect() call.

    The program receives the path of a JSON request file
    (`{"interfaces": [{"importPath": ..., "symbol": ...}]}`) as its last
    argument, runs inside a temporary directory that is removed afterwards,
    and prints `{importPath: {symbol: [{name, inputs, outputs, variadic}]}}`.
    """

    def __init__(self, command: Sequence[str], timeout: Optional[float] = None):
        if not command:
            raise ValueError("reflection command must not be empty")
        self.command = list(command)
        self.timeout = timeout

    def reflect(self, pairs) -> InterfaceMap:
        pairs = sorted(set(pairs))
        if not pairs:
            return {}

        with tempfile.TemporaryDirectory(prefix="gwgen-reflect-") as workdir:
            request = Path(workdir) / "request.json"
            request.write_text(json.dumps({
                "interfaces": [
                    {"importPath": import_path, "symbol": symbol} for import_path, symbol in pairs
                ]
            }))
            logger.debug("Reflecting %d interface(s) with %s", len(pairs), self.command[0])
            try:
                completed = subprocess.run(
                    self.command + [str(request)],
                    cwd=workdir,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    check=True,
                )
            except FileNotFoundError as exc:
                raise GenIOError(f"reflection program {self.command[0]} not found: {exc}") from exc
            except subprocess.TimeoutExpired as exc:
                raise GenIOError(f"reflection program timed out after {exc.timeout}s") from exc
            except subprocess.CalledProcessError as exc:
                raise GenIOError(
                    f"reflection program failed with exit status {exc.returncode}: "
                    f"{(exc.stderr or '').strip()}"
                ) from exc

        try:
            payload = json.loads(completed.stdout)
        except json.JSONDecodeError as exc:
            raise GenIOError(f"could not decode reflection output: {exc}") from exc

        try:
            return _interface_map(payload)
        except (AttributeError, KeyError, TypeError) as exc:
            raise GenIOError(f"malformed reflection output: {exc!r}") from exc


def _interface_map(payload) -> InterfaceMap:
    result: InterfaceMap = {}
    for import_path, symbols in payload.items():
        for symbol, methods in symbols.items():
            result.setdefault(import_path, {})[symbol] = [
                MethodDescriptor.from_dict(method) for method in methods
            ]
    return result
