import shutil
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import pytest

from chargebee_typegen.config import GeneratorConfig
from chargebee_typegen.diagnostics import Diagnostics
from chargebee_typegen.errors import StructuralExpectationFailed
from chargebee_typegen.generator.assembler import TypeModelDocument, assemble, check_references
from chargebee_typegen.generator.fixed import load_fixed_namespaces
from chargebee_typegen.parser.base import EntityType, Module, PropertyDescriptor, Reference
from chargebee_typegen.parser.resource import ElaborationLevel
from chargebee_typegen.store import DocumentStore

FIXTURES = Path(__file__).parent / "fixtures"


def _offline(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


def _warm_cache(cache_dir: Path) -> Path:
    for name in ["index.html", "subscriptions.html", "customers.html"]:
        shutil.copy(FIXTURES / name, cache_dir / name)
    return cache_dir


@asynccontextmanager
async def _store(cache_dir: Path):
    async with httpx.AsyncClient(transport=httpx.MockTransport(_offline)) as client:
        async with DocumentStore(cache_dir=cache_dir, client=client) as store:
            yield store


def _module(namespace: str, *properties: PropertyDescriptor) -> Module:
    model = EntityType(name=namespace.title(), properties=list(properties))
    return Module(namespace_name=namespace, model=model)


class TestAssemble:
    @pytest.mark.anyio
    async def test_builds_modules_in_index_order(self, tmp_path):
        config = GeneratorConfig(cache_dir=_warm_cache(tmp_path))
        diagnostics = Diagnostics()

        async with _store(config.cache_dir) as store:
            document = await assemble(store, config, diagnostics)

        assert [m.namespace_name for m in document.modules] == ["subscription", "customer"]
        assert diagnostics.codes() == ["degraded-enum", "assumed-array", "unresolved-reference"]
        unresolved = diagnostics.items[-1]
        assert "UnbilledChargeEstimate" in unresolved.message
        assert unresolved.context == "subscription.Subscription"

    @pytest.mark.anyio
    async def test_level_is_applied_to_every_page(self, tmp_path):
        config = GeneratorConfig(cache_dir=_warm_cache(tmp_path), level=ElaborationLevel.MODEL)

        async with _store(config.cache_dir) as store:
            document = await assemble(store, config, Diagnostics())

        assert all(m.methods == [] and m.auxiliary_types == [] for m in document.modules)

    @pytest.mark.anyio
    async def test_index_without_resources(self, tmp_path):
        (tmp_path / "index.html").write_text("<p>maintenance</p>", encoding="utf-8")
        config = GeneratorConfig(cache_dir=tmp_path)

        async with _store(tmp_path) as store:
            with pytest.raises(StructuralExpectationFailed, match="resource links"):
                await assemble(store, config, Diagnostics())

    @pytest.mark.anyio
    async def test_duplicate_namespace_is_skipped(self, tmp_path):
        _warm_cache(tmp_path)
        (tmp_path / "index.html").write_text(
            '<a class="list-group-item" href="/docs/api/customers">C</a>'
            '<a class="list-group-item" href="/docs/api/customer_copy">C</a>',
            encoding="utf-8",
        )
        shutil.copy(FIXTURES / "customers.html", tmp_path / "customer_copy.html")
        config = GeneratorConfig(cache_dir=tmp_path)
        diagnostics = Diagnostics()

        async with _store(tmp_path) as store:
            document = await assemble(store, config, diagnostics)

        assert [m.namespace_name for m in document.modules] == ["customer"]
        assert diagnostics.codes() == ["duplicate-namespace"]


class TestResolve:
    def _document(self) -> TypeModelDocument:
        customer = _module("customer")
        subscription = _module(
            "subscription",
            PropertyDescriptor(name="customer", optional=True, shape=Reference(type_name="Customer")),
            PropertyDescriptor(name="coupon", optional=True, shape=Reference(type_name="Coupon")),
        )
        return TypeModelDocument(fixed=load_fixed_namespaces(), modules=[subscription, customer])

    def test_local_name_is_bare(self):
        document = self._document()
        assert document.resolve("Customer", document.modules[1]) == "Customer"

    def test_foreign_name_is_qualified(self):
        document = self._document()
        assert document.resolve("Customer", document.modules[0]) == "_customer.Customer"

    def test_unknown_name(self):
        document = self._document()
        assert document.resolve("Coupon", document.modules[0]) is None

    def test_check_references(self):
        diagnostics = Diagnostics()
        check_references(self._document(), diagnostics)
        assert diagnostics.codes() == ["unresolved-reference"]
        assert "Coupon" in diagnostics.items[0].message
