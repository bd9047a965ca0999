"""CLI entry point for chargebee-typegen."""

import asyncio
import logging
from pathlib import Path

import click

from chargebee_typegen.config import GeneratorConfig, load_config
from chargebee_typegen.diagnostics import Diagnostics
from chargebee_typegen.errors import TypegenError
from chargebee_typegen.generator.assembler import TypeModelDocument, assemble
from chargebee_typegen.generator.emitter import TypeScriptEmitter
from chargebee_typegen.parser.index import discover_resources
from chargebee_typegen.parser.resource import ElaborationLevel
from chargebee_typegen.store import DocumentStore

LEVELS = [level.value for level in ElaborationLevel]


def _open_store(config: GeneratorConfig) -> DocumentStore:
    return DocumentStore(
        cache_dir=config.cache_dir,
        base_url=config.base_url,
        language=config.language,
        timeout=config.timeout,
        user_agent=config.user_agent,
    )


def _load(config_path: Path | None, **overrides) -> GeneratorConfig:
    try:
        return load_config(config_path, **overrides)
    except TypegenError as exc:
        raise click.ClickException(str(exc)) from exc


def _run(coroutine):
    """Run one async pipeline step, turning generator failures into CLI errors."""
    try:
        return asyncio.run(coroutine)
    except TypegenError as exc:
        raise click.ClickException(str(exc)) from exc


async def _generate(config: GeneratorConfig, diagnostics: Diagnostics) -> TypeModelDocument:
    async with _open_store(config) as store:
        return await assemble(store, config, diagnostics)


async def _discover(config: GeneratorConfig) -> list[str]:
    async with _open_store(config) as store:
        index_page = await store.get_page("")
        return discover_resources(index_page.tree)


async def _fetch(config: GeneratorConfig, names: tuple[str, ...]) -> list[str]:
    async with _open_store(config) as store:
        if not names:
            index_page = await store.get_page("")
            names = tuple(discover_resources(index_page.tree))
        for name in names:
            await store.get_page(name)
        return list(names)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log cache and network activity.")
def main(verbose: bool):
    """Chargebee typegen — generate TypeScript declarations from the Chargebee API docs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Declaration file to write.")
@click.option("--cache-dir", default=None, type=click.Path(file_okay=False, path_type=Path), help="Directory for cached pages.")
@click.option("--level", default=None, type=click.Choice(LEVELS), help="How much of each page to turn into types.")
@click.option("--base-url", default=None, help="Documentation root URL.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML configuration file.")
def generate(output: Path | None, cache_dir: Path | None, level: str | None, base_url: str | None, config_path: Path | None):
    """Generate the declaration file for every documented resource."""
    config = _load(config_path, output=output, cache_dir=cache_dir, level=level, base_url=base_url)
    click.echo(f"Reading {config.base_url} (level: {config.level.value})...")

    diagnostics = Diagnostics()
    document = _run(_generate(config, diagnostics))
    click.echo(f"Built {len(document.modules)} resource namespaces.")

    text = TypeScriptEmitter(document, config.module_name, config.root_namespace).render()
    config.output.parent.mkdir(parents=True, exist_ok=True)
    config.output.write_text(text, encoding="utf-8")

    if diagnostics:
        click.echo(f"{len(diagnostics)} diagnostics:")
        for diagnostic in diagnostics:
            suffix = f" ({diagnostic.context})" if diagnostic.context else ""
            click.echo(f"  {diagnostic.code}: {diagnostic.message}{suffix}")
    click.echo(f"Declarations saved to {config.output}")


@main.command()
@click.option("--cache-dir", default=None, type=click.Path(file_okay=False, path_type=Path), help="Directory for cached pages.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML configuration file.")
def resources(cache_dir: Path | None, config_path: Path | None):
    """List the resources linked from the documentation index."""
    config = _load(config_path, cache_dir=cache_dir)
    for name in _run(_discover(config)):
        click.echo(name)


@main.command()
@click.argument("names", nargs=-1)
@click.option("--cache-dir", default=None, type=click.Path(file_okay=False, path_type=Path), help="Directory for cached pages.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML configuration file.")
def fetch(names: tuple[str, ...], cache_dir: Path | None, config_path: Path | None):
    """Warm the page cache; without NAMES, the index and every resource."""
    config = _load(config_path, cache_dir=cache_dir)
    fetched = _run(_fetch(config, names))
    click.echo(f"Cached {len(fetched)} pages in {config.cache_dir}")
