"""Fixed namespace content — error taxonomy and request/response contracts.

The content is data (``fixed_namespaces.yaml`` next to this module), kept
apart from the extraction pipeline. A replacement file can be configured.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from chargebee_typegen.errors import ConfigError

FIXED_DIR = Path(__file__).parent
DEFAULT_FIXED_PATH = FIXED_DIR / "fixed_namespaces.yaml"


class Parameter(BaseModel):
    name: str
    type: str
    optional: bool = False


class Member(BaseModel):
    """An interface member; a method when ``parameters`` is set."""

    name: str
    type: str
    optional: bool = False
    doc: str = ""
    default: str | None = None  # rendered as @default
    parameters: list[Parameter] | None = None


class InterfaceDecl(BaseModel):
    name: str
    type_parameters: list[str] = []
    members: list[Member] = []
    doc: str = ""


class FunctionDecl(BaseModel):
    name: str
    parameters: list[Parameter] = []
    returns: str = "void"
    doc: str = ""


class ErrorInterface(BaseModel):
    """One error class: the base members plus a literal ``type``."""

    name: str
    type: str | None  # None for errors the API sends without a type
    codes: list[str] = []  # closed api_error_code union, when documented
    doc: str = ""


class ErrorNamespace(BaseModel):
    namespace: str
    union: str
    base: InterfaceDecl
    interfaces: list[ErrorInterface]

    @field_validator("interfaces")
    @classmethod
    def _distinct_types(cls, interfaces: list[ErrorInterface]) -> list[ErrorInterface]:
        types = [i.type for i in interfaces]
        if len(types) != len(set(types)):
            raise ValueError("error types must be distinct")
        return interfaces


class ContractNamespace(BaseModel):
    namespace: str
    request_wrapper: str
    interfaces: list[InterfaceDecl]


class FixedNamespaces(BaseModel):
    errors: ErrorNamespace
    contracts: ContractNamespace
    root_functions: list[FunctionDecl] = []

    @property
    def request_wrapper(self) -> str:
        """Qualified name of the generic wrapper returned by every method."""
        return f"{self.contracts.namespace}.{self.contracts.request_wrapper}"


def load_fixed_namespaces(path: Path | None = None) -> FixedNamespaces:
    """Load the fixed namespace tables, the bundled ones by default."""
    path = path or DEFAULT_FIXED_PATH
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read fixed namespaces {path}: {exc}") from exc
    try:
        return FixedNamespaces(**(data or {}))
    except (TypeError, ValidationError) as exc:
        raise ConfigError(f"Invalid fixed namespaces {path}: {exc}") from exc
