"""Namespace Assembler — builds the whole type model document for one run.

Pages are processed strictly one after another in index order; the first
failure aborts the run.
"""

import logging
from functools import cached_property

from pydantic import BaseModel, ConfigDict

from chargebee_typegen.config import GeneratorConfig
from chargebee_typegen.diagnostics import Diagnostics
from chargebee_typegen.errors import StructuralExpectationFailed
from chargebee_typegen.generator.fixed import FixedNamespaces, load_fixed_namespaces
from chargebee_typegen.parser.base import (
    ArrayOfStruct,
    Module,
    PropertyDescriptor,
    Reference,
    Struct,
)
from chargebee_typegen.parser.index import discover_resources
from chargebee_typegen.parser.resource import build_module
from chargebee_typegen.store import DocumentStore

logger = logging.getLogger(__name__)


class TypeModelDocument(BaseModel):
    """Root of the type model: fixed namespaces plus one Module per resource."""

    model_config = ConfigDict(frozen=True)

    fixed: FixedNamespaces
    modules: list[Module]

    @cached_property
    def type_index(self) -> dict[str, str]:
        """Type name -> prefixed namespace defining it; the first definition wins."""
        index: dict[str, str] = {}
        for module in self.modules:
            for name in module.type_names():
                index.setdefault(name, module.prefixed_name)
        return index

    def resolve(self, type_name: str, module: Module) -> str | None:
        """Name to write for a reference from inside ``module``, or None."""
        if type_name in module.type_names():
            return type_name
        namespace = self.type_index.get(type_name)
        if namespace is None:
            return None
        return f"{namespace}.{type_name}"


async def assemble(
    store: DocumentStore,
    config: GeneratorConfig,
    diagnostics: Diagnostics,
    fixed: FixedNamespaces | None = None,
) -> TypeModelDocument:
    """Discover every resource on the index page and build its module."""
    fixed = fixed or load_fixed_namespaces(config.fixed_namespaces)

    index_page = await store.get_page("")
    resources = discover_resources(index_page.tree)
    if not resources:
        raise StructuralExpectationFailed("resource links on index page")
    logger.info("Discovered %d resources", len(resources))

    modules: list[Module] = []
    namespaces: set[str] = set()
    for resource in resources:
        page = await store.get_page(resource)
        module = build_module(page.tree, diagnostics, level=config.level, provider=config.provider)
        if module.namespace_name in namespaces:
            diagnostics.warn("duplicate-namespace", f"namespace {module.namespace_name} already built", resource)
            continue
        namespaces.add(module.namespace_name)
        modules.append(module)

    document = TypeModelDocument(fixed=fixed, modules=modules)
    check_references(document, diagnostics)
    return document


def check_references(document: TypeModelDocument, diagnostics: Diagnostics) -> None:
    """Record a diagnostic for every reference that no module defines."""
    for module in document.modules:
        groups = [(module.model.name, module.model.properties)]
        groups += [(t.name, t.properties) for t in module.auxiliary_types]
        groups += [(m.name, m.parameter_properties or []) for m in module.methods]
        for owner, properties in groups:
            for type_name in _referenced_types(properties):
                if document.resolve(type_name, module) is None:
                    diagnostics.warn(
                        "unresolved-reference",
                        f"{type_name} is not defined by any resource, emitted as unknown",
                        f"{module.namespace_name}.{owner}",
                    )


def _referenced_types(properties: list[PropertyDescriptor]) -> list[str]:
    names: list[str] = []
    for prop in properties:
        shape = prop.shape
        if isinstance(shape, Reference):
            names.append(shape.type_name)
        elif isinstance(shape, (Struct, ArrayOfStruct)):
            names.extend(_referenced_types(shape.properties))
    return names
