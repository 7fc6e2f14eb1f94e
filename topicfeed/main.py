"""
Main entry point for topicfeed
Provides CLI commands for fetching and inspecting topic data
"""

import asyncio
import json
from typing import Optional, Tuple

import click

from topicfeed.config.settings import get_config
from topicfeed.data.cache import CacheStore, format_age
from topicfeed.data.errors import ErrorKind
from topicfeed.orchestration import CacheJanitor, SourceRegistry, TopicResult, build_default_registry
from topicfeed.utils.logger import get_logger

logger = get_logger(__name__)

def open_cache() -> CacheStore:
    """Create the process cache, restoring the snapshot when persistence is on"""
    config = get_config()
    cache = CacheStore()
    if config.cache.persist:
        cache.load(config.snapshot_path)
    return cache

def flush_cache(cache: CacheStore):
    """Teardown hook: write the cache snapshot when persistence is on"""
    config = get_config()
    if config.cache.persist:
        cache.save(config.snapshot_path)

def echo_result(result: TopicResult):
    click.echo(f"\n📰 {result.topic}")

    if result.sources:
        click.echo("  Sources:")
        for source in result.sources:
            origin = f"cache, {format_age(source.cache_age)} old" if source.from_cache else "live"
            note = f" ⚠️ {source.error}" if source.error else ""
            click.echo(f"    • {source.name} ({origin}){note}")
    else:
        click.echo("  Sources: none")

    if result.errors:
        click.echo("  Errors:")
        for error in result.errors:
            kind = f"[{error.kind.value}] " if error.kind else ""
            click.echo(f"    • {error.source}: {kind}{error.error}")

    if result.data is None:
        click.echo("  ❌ No data")
        return

    click.echo(f"  Keys: {', '.join(sorted(result.data))}")
    for line in (result.data.get('key_data') or [])[:8]:
        click.echo(f"    - {line}")

@click.group()
def cli():
    """Multi-source topic feed aggregator"""
    pass

@cli.command()
def status():
    """Check configuration and registered sources"""
    config = get_config()

    click.echo("\n📋 Configuration Status:")
    click.echo(f"  • Log Level: {config.system.log_level}")
    click.echo(f"  • HTTP Timeout: {config.http.timeout_seconds}s")
    click.echo(f"  • Default Topics: {', '.join(config.system.default_topics)}")
    click.echo(f"  • Cache Snapshot: {config.snapshot_path if config.cache.persist else 'disabled'}")

    click.echo("\n🔑 Credentials:")
    for name, is_set in (("Finnhub", bool(config.api.finnhub_key)), ("GitHub", bool(config.api.github_token))):
        click.echo(f"  • {name}: {'✅ Set' if is_set else '❌ Missing'}")

    registry = build_default_registry(CacheStore(), config)
    click.echo("\n📡 Sources:")
    for topic, infos in registry.get_status().items():
        click.echo(f"  {topic}:")
        for info in infos:
            budget = info['rate_limit']
            click.echo(
                f"    • {info['name']} ({info['priority']}) "
                f"fresh {format_age(info['fresh_ttl'])}, stale {format_age(info['stale_ttl'])}, "
                f"{budget['max_requests']} req/{format_age(budget['window_seconds'])}"
            )

@cli.command()
@click.argument('topics', nargs=-1)
@click.option('--json', 'as_json', is_flag=True, help='Print results as JSON')
def fetch(topics: Tuple[str, ...], as_json: bool):
    """Fetch and merge data for TOPICS (default: configured topics)"""
    asyncio.run(run_fetch(list(topics) or None, as_json))

async def run_fetch(topics: Optional[list], as_json: bool = False):
    config = get_config()
    cache = open_cache()
    registry = build_default_registry(cache, config)
    janitor = CacheJanitor(
        cache,
        max_age=config.cache.cleanup_max_age_minutes * 60,
        interval=config.cache.cleanup_interval_minutes * 60
    )

    topics = topics or config.system.default_topics
    logger.info(f"Fetching {len(topics)} topics: {', '.join(topics)}")

    try:
        await janitor.start()
        results = await registry.fetch_all_topics(topics)
    finally:
        await janitor.stop()
        await registry.close()
        flush_cache(cache)

    logger.info(f"{sum(1 for r in results.values() if r.ok)}/{len(results)} topics returned data")

    if as_json:
        click.echo(json.dumps({t: r.to_dict() for t, r in results.items()}, indent=2, default=str))
        return

    for result in results.values():
        echo_result(result)

@cli.command()
@click.argument('name')
@click.argument('topic', required=False)
def source(name: str, topic: Optional[str]):
    """Probe a single source NAME (e.g. coingecko, reddit-ai)"""
    asyncio.run(run_source(name, topic))

async def run_source(name: str, topic: Optional[str] = None):
    cache = open_cache()
    registry = build_default_registry(cache)

    matches = [
        (registered_topic, s)
        for registered_topic in registry.get_topics()
        for s in registry.get_sources(registered_topic)
        if s.name == name
    ]
    if not matches:
        click.echo(f"❌ Unknown source: {name}")
        return

    registered_topic, target = matches[0]
    topic = topic or registered_topic

    try:
        outcome = await target.fetch_with_cache(topic, cache)
    finally:
        await registry.close()
        flush_cache(cache)

    click.echo(f"\n🔍 {target.name} / {topic}")
    click.echo(f"  • From cache: {outcome.from_cache}")
    if outcome.cache_age is not None:
        click.echo(f"  • Cache age: {format_age(outcome.cache_age)}")
    if outcome.error:
        kind = outcome.error_kind.value if outcome.error_kind else "error"
        click.echo(f"  • Error ({kind}): {outcome.error}")

    if not outcome.ok:
        click.echo("  ❌ No data")
        return

    try:
        normalized = target.normalize(outcome.data) or {}
    except Exception as e:
        target.logger.error(f"normalize failed: {e}")
        click.echo(f"  ❌ Normalize failed ({ErrorKind.NORMALIZE.value}): {e}")
        return

    click.echo(f"  • Keys: {', '.join(sorted(normalized))}")
    for line in normalized.get('key_data') or []:
        click.echo(f"    - {line}")

@cli.command('cache-stats')
def cache_stats():
    """Show cached entries and their ages"""
    stats = open_cache().get_stats()

    click.echo(f"\n🗄️ Cache entries: {stats['size']}")
    for entry in stats['entries']:
        click.echo(f"  • {entry['key']}: {entry['age_formatted']}")

@cli.command()
@click.option('--max-age-minutes', type=int, default=None, help='Remove entries older than this')
def cleanup(max_age_minutes: Optional[int]):
    """Remove old cache entries"""
    config = get_config()
    if max_age_minutes is None:
        max_age_minutes = config.cache.cleanup_max_age_minutes
    max_age = max_age_minutes * 60

    cache = open_cache()
    removed = cache.cleanup(max_age)
    flush_cache(cache)

    click.echo(f"🧹 Removed {removed} entries older than {format_age(max_age)} ({len(cache)} left)")

if __name__ == "__main__":
    cli()
