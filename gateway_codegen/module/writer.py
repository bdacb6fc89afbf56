"""Writing generated files and running the source formatter over them."""

import subprocess
from pathlib import Path
from typing import Iterable, Optional, Sequence

from gateway_codegen.errors import GenIOError
from gateway_codegen.gen_logging import get_logger

logger = get_logger(__name__)


class FileWriter:
    """
    Writes generated bytes to disk, creating parent directories as needed.

    Files whose suffix is in source_extensions are passed to
    formatter_command (for example ["gofmt", "-w"]) after being written.
    """

    def __init__(self, formatter_command: Optional[Sequence[str]] = None,
                 source_extensions: Iterable[str] = (".go",)):
        self.formatter_command = list(formatter_command or [])
        self.source_extensions = tuple(source_extensions)

    def write(self, path, data: bytes) -> None:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise GenIOError(f"Error writing file {path}: {exc}") from exc
        logger.debug("Wrote %s (%d bytes)", path, len(data))

        if self.formatter_command and path.suffix in self.source_extensions:
            self.format(path)

    def format(self, path) -> None:
        command = self.formatter_command + [str(path)]
        try:
            subprocess.run(command, check=True, capture_output=True, text=True)
        except FileNotFoundError as exc:
            raise GenIOError(f"Formatter {self.formatter_command[0]} not found: {exc}") from exc
        except subprocess.CalledProcessError as exc:
            raise GenIOError(
                f"Error formatting {path}: {(exc.stderr or exc.stdout or '').strip()}"
            ) from exc
