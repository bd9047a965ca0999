"""Exception hierarchy for the generator.

Every error is fatal for the run: the documentation changed shape and a
human has to look at it before the extraction rules are updated.
"""


class TypegenError(Exception):
    """Base class for all generator failures."""


class StructuralExpectationFailed(TypegenError):
    """A marker, element or text the extraction rules rely on is absent."""

    def __init__(self, what: str, context: str = ""):
        self.what = what
        self.context = context
        message = f"Missing {what}."
        if context:
            message = f"Missing {what} ({context})."
        super().__init__(message)


class UnsupportedShape(TypegenError):
    """A recognised type token combination that no rule knows how to model."""

    def __init__(self, what: str, context: str = ""):
        self.what = what
        self.context = context
        message = f"Unsupported shape: {what}."
        if context:
            message = f"Unsupported shape: {what} ({context})."
        super().__init__(message)


class RetrievalFailed(TypegenError):
    """A documentation page is neither cached nor retrievable."""

    def __init__(self, resource_id: str, status_code: int | None, reason: str):
        self.resource_id = resource_id
        self.status_code = status_code
        self.reason = reason
        title = resource_id or "index"
        if status_code is None:
            message = f"Failed to retrieve resource: {title}: {reason}"
        else:
            message = f"Failed to retrieve resource: {title}: {status_code}: {reason}"
        super().__init__(message)


class ConfigError(TypegenError):
    """The configuration file is unreadable or has invalid values."""
