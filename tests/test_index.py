from pathlib import Path

from bs4 import BeautifulSoup

from chargebee_typegen.parser.index import discover_resources

FIXTURES = Path(__file__).parent / "fixtures"


def _tree(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


class TestDiscoverResources:
    def test_fixture_index(self):
        tree = _tree((FIXTURES / "index.html").read_text(encoding="utf-8"))
        assert discover_resources(tree) == ["subscriptions", "customers"]

    def test_duplicate_links_yield_one_resource(self):
        tree = _tree(
            '<a class="list-group-item" href="/docs/api/subscriptions">A</a>'
            '<a class="list-group-item" href="/docs/api/subscriptions">B</a>'
        )
        assert discover_resources(tree) == ["subscriptions"]

    def test_ignores_fragments_queries_and_unclassed_links(self):
        tree = _tree(
            '<a class="list-group-item" href="/docs/api/invoices#list">x</a>'
            '<a class="list-group-item" href="/docs/api/invoices?lang=node">x</a>'
            '<a href="/docs/api/events">x</a>'
            '<a class="list-group-item">no href</a>'
        )
        assert discover_resources(tree) == []

    def test_keeps_page_order(self):
        tree = _tree(
            '<div><a class="list-group-item" href="/docs/api/payment_intents">P</a></div>'
            '<a class="list-group-item" href="/docs/api/addons">A</a>'
        )
        assert discover_resources(tree) == ["payment_intents", "addons"]
