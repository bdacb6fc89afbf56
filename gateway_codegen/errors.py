"""
Error kinds raised by the code generation engine.

Every failure surfaced to callers derives from CodegenError. Errors raised by
third-party libraries (yaml, pydantic, textX, jinja2, subprocess) are converted
at the boundary where they occur, so callers only ever need to catch the
classes defined here.
"""


class CodegenError(Exception):
    """Base class for all engine errors."""

    def wrap(self, message: str) -> "CodegenError":
        """
        Return an error of the same class reading "<message>: <self>".

        Attributes set on the original (for example SkipCodeGen.idl_file) are
        preserved so that callers can still branch on the kind.
        """
        wrapped = self.__class__.__new__(self.__class__)
        wrapped.__dict__.update(self.__dict__)
        Exception.__init__(wrapped, f"{message}: {self}")
        wrapped.__cause__ = self
        return wrapped


class ConfigError(CodegenError):
    """Missing or invalid configuration value, or an unreadable config file."""


class ParseError(ConfigError):
    """A config document is not well-formed YAML or JSON."""


class BadConfig(ConfigError):
    """A config document parsed but a required common field is empty."""


class IDLError(CodegenError):
    """An IDL file exists but could not be parsed or linked."""


class SkipCodeGen(CodegenError):
    """A referenced IDL file does not exist on disk."""

    def __init__(self, idl_file: str, message: str = None):
        self.idl_file = idl_file
        super().__init__(message or f"Skipping generation: idl file {idl_file} does not exist")


class DependencyError(CodegenError):
    """Unknown class or instance, class cycle, or peer dependency cycle."""


class BindingError(CodegenError):
    """An endpoint cannot be bound to its downstream client."""


class GenIOError(CodegenError):
    """Directory listing, file read or write, or child process failure."""


class TemplateError(CodegenError):
    """A template failed to render."""

    def __init__(self, template_name: str, package_root: str, cause: str):
        self.template_name = template_name
        self.package_root = package_root
        super().__init__(
            f"Error generating template {template_name} in {package_root}: {cause}"
        )


class HookError(CodegenError):
    """One or more post-generation hook tasks failed."""

    def __init__(self, hook_name: str, failures: list):
        self.hook_name = hook_name
        self.failures = failures
        details = "; ".join(str(failure) for failure in failures)
        super().__init__(f"{hook_name} failed for {len(failures)} instance(s): {details}")


def is_skip_codegen(exc: BaseException) -> bool:
    """True when exc, or anything in its cause chain, is a SkipCodeGen."""
    seen = set()
    while exc is not None and id(exc) not in seen:
        if isinstance(exc, SkipCodeGen):
            return True
        seen.add(id(exc))
        exc = exc.__cause__
    return False
