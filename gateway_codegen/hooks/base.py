"""Common shape of post-generation hooks."""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from gateway_codegen.gen_logging import get_logger

logger = get_logger(__name__)


@dataclass
class HookResult:
    """Absolute path -> bytes to write, plus the per-instance failures."""

    files: Dict[str, bytes] = field(default_factory=dict)
    failures: List[Exception] = field(default_factory=list)


class FileMap:
    """Thread-safe collection of rendered files."""

    def __init__(self):
        self._files: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def add(self, path, data: bytes) -> None:
        with self._lock:
            self._files[str(path)] = data

    def snapshot(self) -> Dict[str, bytes]:
        with self._lock:
            return dict(self._files)


class PostGenHook:
    """
    Base class of the mock hooks.

    A hook is called with class name -> instances and returns a HookResult.
    It never writes files itself and never raises for a single instance:
    per-instance errors are collected into `failures`.
    """

    name = "hook"

    def __init__(self, template, helper):
        self.template = template
        self.helper = helper

    def __call__(self, modules) -> HookResult:
        raise NotImplementedError

    def render(self, name: str, data) -> bytes:
        return self.template.render(name, data, self.helper)

    def build_dir(self, instance) -> Path:
        root = instance.target_gen_dir or self.helper.target_gen_dir
        return Path(root) / instance.directory

    def log_progress(self, instance, subdir: str, position: int, total: int) -> None:
        logger.info(
            "Generating %8s %8s %-20s in %-30s %d/%d",
            "mock", instance.class_name, instance.instance_name,
            Path(instance.directory) / subdir, position, total,
        )
