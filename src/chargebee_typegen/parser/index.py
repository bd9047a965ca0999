"""Discover documented resources from the API index page."""

import re

from bs4.element import Tag

from chargebee_typegen.parser.locator import element_matcher, find_all_descendants

RESOURCE_PATH_PATTERN = re.compile(r"^/docs/api/([a-z_]+)$")

_resource_link = element_matcher("a", ("list-group-item",))


def discover_resources(index_tree: Tag) -> list[str]:
    """Resource path segments linked from the index, in page order, without duplicates."""
    resources: list[str] = []
    for link in find_all_descendants(index_tree, _resource_link):
        href = link.get("href")
        if not isinstance(href, str):
            continue
        match = RESOURCE_PATH_PATTERN.match(href)
        if match is None:
            continue
        name = match.group(1)
        if name not in resources:
            resources.append(name)
    return resources
