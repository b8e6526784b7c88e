from typing import Optional, Sequence


class FmlError(Exception):
    # base exception for all fml errors. `path` is the template file the error belongs to.
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        return self.message

    def with_path(self, path: str) -> "FmlError":
        # returns a copy of this error attributed to the template file `path`.
        return type(self)(self.message, path)


class FmlSyntaxError(FmlError):
    # malformed markers or unbalanced tags.
    def __init__(self, detail: str, path: Optional[str] = None, line: Optional[int] = None):
        self.detail = detail
        self.line = line
        where = path if path else "<string>"
        super().__init__(f"FML syntax error in {where}: {detail}", path)

    def with_path(self, path: str) -> "FmlSyntaxError":
        return FmlSyntaxError(self.detail, path, self.line)


class UndefinedVariableError(FmlError, KeyError):
    # a placeholder path that does not resolve against the context.
    def __init__(self, variable: str, path: Optional[str] = None):
        self.variable = variable
        message = f"Undefined variable '{variable}'"
        if path:
            message += f" in {path}"
        super().__init__(message, path)

    def with_path(self, path: str) -> "UndefinedVariableError":
        return UndefinedVariableError(self.variable, path)


class IncludeNotFoundError(FmlError, FileNotFoundError):
    # the file loader could not find an include target (or the entry file).
    def __init__(self, resolved_path: str, path: Optional[str] = None):
        self.resolved_path = resolved_path
        message = f"File not found: {resolved_path}"
        if path:
            message += f" (included from {path})"
        super().__init__(message, path)

    def with_path(self, path: str) -> "IncludeNotFoundError":
        return IncludeNotFoundError(self.resolved_path, path)


class TemplateDecodeError(FmlError):
    # a template or include whose bytes do not decode with the configured encoding.
    def __init__(self, resolved_path: str, encoding: str, reason: str, path: Optional[str] = None):
        self.resolved_path = resolved_path
        self.encoding = encoding
        self.reason = reason
        message = f"Could not decode {resolved_path} as {encoding}: {reason}"
        if path:
            message += f" (included from {path})"
        super().__init__(message, path)

    def with_path(self, path: str) -> "TemplateDecodeError":
        return TemplateDecodeError(self.resolved_path, self.encoding, self.reason, path)


class IncludeCycleError(FmlError):
    # a file includes itself, directly or through other files.
    def __init__(self, chain: Sequence[str], path: Optional[str] = None):
        self.chain = list(chain)
        super().__init__("Include cycle detected: " + " -> ".join(self.chain), path)

    def with_path(self, path: str) -> "IncludeCycleError":
        return IncludeCycleError(self.chain, path)


class ConfigError(FmlError):
    # errors related to options and configuration files.
    pass


class OutputError(FmlError):
    # errors during output operations.
    pass
