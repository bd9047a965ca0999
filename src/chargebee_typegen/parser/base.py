"""Type model recovered from the documentation pages.

The Model Builder converts every resource page into these models; the
Emitter renders them. All models are frozen: they are built in a single
pass over a page and never changed afterwards.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

PrimitiveKind = Literal["string", "number", "boolean", "object", "unknown"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Primitive(_Frozen):
    """A scalar (or array of scalars) with no further structure."""

    shape: Literal["primitive"] = "primitive"
    kind: PrimitiveKind
    is_array: bool = False


class EnumeratedString(_Frozen):
    """A string restricted to the documented values, in documentation order."""

    shape: Literal["enum"] = "enum"
    values: list[str] = Field(min_length=1)


class Reference(_Frozen):
    """Points at another named type, possibly defined on another page."""

    shape: Literal["reference"] = "reference"
    type_name: str
    is_array: bool = False


class Struct(_Frozen):
    shape: Literal["struct"] = "struct"
    properties: list["PropertyDescriptor"]


class ArrayOfStruct(_Frozen):
    shape: Literal["array_of_struct"] = "array_of_struct"
    properties: list["PropertyDescriptor"]


FilterValue = Annotated[Union[Primitive, EnumeratedString], Field(discriminator="shape")]


class FilterSet(_Frozen):
    """One filterable query parameter, expanded into a field per operator."""

    shape: Literal["filter_set"] = "filter_set"
    base_name: str
    operators: list[str] = Field(min_length=1)
    value: FilterValue


PropertyShape = Annotated[
    Union[Primitive, EnumeratedString, Reference, Struct, ArrayOfStruct, FilterSet],
    Field(discriminator="shape"),
]


class PropertyDescriptor(_Frozen):
    """One documented attribute or parameter."""

    name: str = Field(min_length=1)
    optional: bool
    shape: PropertyShape

    def field_names(self) -> list[str]:
        """Names of the fields this descriptor emits.

        A filter family emits ``base[operator]`` for every operator and never
        the bare base name.
        """
        if isinstance(self.shape, FilterSet):
            return [f"{self.shape.base_name}[{op}]" for op in self.shape.operators]
        return [self.name]


Struct.model_rebuild()
ArrayOfStruct.model_rebuild()


class EntityType(_Frozen):
    """A named record type; property names are unique within it."""

    name: str  # PascalCase
    properties: list[PropertyDescriptor]


class MethodDescriptor(_Frozen):
    """A resource method sniffed from its code sample and sample result."""

    name: str
    has_string_parameter: bool
    has_object_parameter: bool
    parameter_properties: list[PropertyDescriptor] | None = None
    is_list_result: bool = False


class Module(_Frozen):
    """Everything generated for one documentation resource page."""

    namespace_name: str
    model: EntityType
    auxiliary_types: list[EntityType] = []
    methods: list[MethodDescriptor] = []

    @property
    def prefixed_name(self) -> str:
        # One resource is called "export", a reserved word in the output syntax.
        return f"_{self.namespace_name}"

    def type_names(self) -> list[str]:
        return [self.model.name] + [t.name for t in self.auxiliary_types]
