"""Command-line interface for the multi-lane Reddit client."""

import asyncio
import logging
import logging.config
import sys
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from reddit_lanes.app import LaneFeedApp
from reddit_lanes.config import Config
from reddit_lanes.errors import LaneFeedError
from reddit_lanes.lanes.controller import LaneController
from reddit_lanes.lanes.registry import LaneRegistry
from reddit_lanes.lanes.search import SearchDebouncer
from reddit_lanes.models.lane import LanePhase, SortMode
from reddit_lanes.models.settings import Theme
from reddit_lanes.monitoring.metrics import PrometheusExporter
from reddit_lanes.reddit_client import ContentProviderClient
from reddit_lanes.storage.settings_store import SettingsStore
from reddit_lanes.storage.state_store import JsonFileStateStore
from reddit_lanes.utils.formatting import format_item, format_subscribers

app = typer.Typer(help="Multi-lane Reddit client - browse several subreddits side by side")
settings_app = typer.Typer(help="Show and change persisted display settings")
app.add_typer(settings_app, name="settings")

logger = logging.getLogger(__name__)

ConfigOption = Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")]
LogLevelOption = Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")]


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Set up logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional rotating log file path
    """
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": "standard",
            "stream": "ext://sys.stderr",
        },
    }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "standard",
            "filename": log_file,
            "maxBytes": 10485760,  # 10 MB
            "backupCount": 5,
            "encoding": "utf8",
        }

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers),
                "level": log_level,
                "propagate": True,
            },
            "asyncio": {
                "level": "WARNING",
            },
            "aiohttp": {
                "level": "WARNING",
            },
        },
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str, log_level: str = "WARNING") -> Config:
    """Load and validate configuration, exiting on invalid settings."""
    config = Config.from_files(config_path)
    setup_logging(log_level, config.log_file)

    validation_errors = config.validate()
    if validation_errors:
        for error in validation_errors:
            logger.error(f"Configuration error: {error}")
        print("Invalid configuration, aborting", file=sys.stderr)
        raise typer.Exit(code=1)
    return config


async def _open_registry(config: Config, client: ContentProviderClient) -> LaneRegistry:
    state_store = JsonFileStateStore(config.state_dir)
    registry = LaneRegistry(
        client,
        SettingsStore(state_store),
        state_store,
        page_size=config.provider.page_size,
    )
    await registry.restore(config.default_subreddits, start=False)
    return registry


async def add_topic(config: Config, topic: str) -> int:
    """
    Validate and add a topic to the persisted lane order.

    Returns:
        Number of items the new lane loaded
    """
    async with ContentProviderClient(config.provider) as client:
        registry = await _open_registry(config, client)
        try:
            lane = await registry.add(topic)
            await lane.settle()
            return len(lane.state.items)
        finally:
            await registry.close()


async def remove_topic(config: Config, topic: str) -> bool:
    async with ContentProviderClient(config.provider) as client:
        registry = await _open_registry(config, client)
        try:
            return registry.remove(topic)
        finally:
            await registry.close()


async def read_feed(config: Config, topic: str, sort: SortMode, pages: int) -> LaneController:
    """Load ``pages`` pages of one subreddit through a lane controller."""
    settings_store = SettingsStore(JsonFileStateStore(config.state_dir))
    async with ContentProviderClient(config.provider) as client:
        lane = LaneController(topic, client, settings_store, sort=sort, page_size=config.provider.page_size)
        await lane.load()
        for _ in range(pages - 1):
            if not lane.state.has_more or lane.state.phase != LanePhase.READY:
                break
            await lane.load_more()
        return lane


async def run_search(config: Config, query: str) -> SearchDebouncer:
    async with ContentProviderClient(config.provider) as client:
        debouncer = SearchDebouncer(
            client,
            delay_sec=0,
            min_query_length=config.search.min_query_length,
            limit=config.provider.search_limit,
        )
        debouncer.on_query_change(query)
        await debouncer.drain()
        return debouncer


def print_view(feed_app: LaneFeedApp) -> None:
    view = feed_app.carousel_view()
    if not view.visible:
        print("(no lanes)")
        return
    settings = feed_app.settings
    nav = f"{'<' if view.can_go_prev else ' '} lanes {view.offset + 1}-{view.offset + len(view.visible)} of {len(feed_app.registry)} {'>' if view.can_go_next else ' '}"
    print(nav)
    for lane in feed_app.visible_lanes():
        state = lane.state
        print(f"== r/{state.topic} [{state.sort.value}] {state.phase.value} ({len(state.items)} items)")
        if state.phase == LanePhase.ERROR:
            print(f"   error: {state.last_error}")
        for item in state.items[:5]:
            print(format_item(item, settings))


async def run_watch(config: Config, width: int, poll_sec: float, ticks: Optional[int] = None) -> None:
    """Run the full app, printing the visible carousel window every ``poll_sec`` seconds."""
    exporter = None
    if config.monitoring.enable_prometheus:
        exporter = PrometheusExporter(port=config.monitoring.prometheus_port)
        exporter.start_server()

    async with LaneFeedApp(config, prometheus_exporter=exporter) as feed_app:
        feed_app.set_viewport(width)
        count = 0
        while ticks is None or count < ticks:
            await asyncio.gather(*(lane.settle() for lane in feed_app.visible_lanes()))
            print_view(feed_app)
            count += 1
            if ticks is None or count < ticks:
                await asyncio.sleep(poll_sec)


@app.command()
def lanes(config: ConfigOption = "config.yaml") -> None:
    """List the open lanes in carousel order."""
    config_obj = load_config(config)
    stored = JsonFileStateStore(config_obj.state_dir).get("subreddits")
    if not isinstance(stored, list):
        print("(no saved lanes, defaults will be used)")
        stored = config_obj.default_subreddits
    for index, topic in enumerate(stored, start=1):
        print(f"{index}. r/{topic}")


@app.command()
def add(
    topic: Annotated[str, typer.Argument(help="Subreddit name, without r/")],
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "WARNING",
) -> None:
    """Validate a subreddit and add it as a new lane."""
    config_obj = load_config(config, loglevel)
    try:
        count = asyncio.run(add_topic(config_obj, topic))
    except (LaneFeedError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise typer.Exit(code=1)
    print(f"Added r/{topic} ({count} items loaded)")


@app.command()
def remove(
    topic: Annotated[str, typer.Argument(help="Subreddit name, without r/")],
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "WARNING",
) -> None:
    """Remove a lane."""
    config_obj = load_config(config, loglevel)
    if asyncio.run(remove_topic(config_obj, topic)):
        print(f"Removed r/{topic}")
    else:
        print(f"r/{topic} is not open")


@app.command()
def feed(
    topic: Annotated[str, typer.Argument(help="Subreddit name, without r/")],
    sort: Annotated[SortMode, typer.Option("--sort", "-s", help="Sort order")] = SortMode.HOT,
    pages: Annotated[int, typer.Option("--pages", "-p", min=1, help="Pages to load")] = 1,
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "WARNING",
) -> None:
    """Print one subreddit's feed."""
    config_obj = load_config(config, loglevel)
    lane = asyncio.run(read_feed(config_obj, topic, sort, pages))
    if lane.state.phase == LanePhase.ERROR:
        print(f"Error: {lane.state.last_error}", file=sys.stderr)
        raise typer.Exit(code=1)

    settings = SettingsStore(JsonFileStateStore(config_obj.state_dir)).get()
    for item in lane.state.items:
        print(format_item(item, settings))
    if not lane.state.has_more:
        print("-- end of feed --")


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Search text")],
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "WARNING",
) -> None:
    """Search subreddits to add."""
    config_obj = load_config(config, loglevel)
    if len(query.strip()) < config_obj.search.min_query_length:
        print(f"Query must be at least {config_obj.search.min_query_length} characters")
        return

    debouncer = asyncio.run(run_search(config_obj, query))
    if debouncer.last_error:
        print(f"Search failed: {debouncer.last_error}", file=sys.stderr)
    elif not debouncer.results:
        print("No subreddits found")
    for result in debouncer.results:
        print(f"r/{result.topic} ({format_subscribers(result.subscriber_count)}) {result.description}")


@app.command()
def watch(
    width: Annotated[int, typer.Option("--width", "-w", help="Viewport width in pixels")] = 1280,
    poll: Annotated[float, typer.Option("--poll", help="Seconds between screen updates")] = 30.0,
    config: ConfigOption = "config.yaml",
    loglevel: LogLevelOption = "INFO",
) -> None:
    """Run all lanes with auto-refresh and print the visible window until interrupted."""
    config_obj = load_config(config, loglevel)
    try:
        asyncio.run(run_watch(config_obj, width, poll))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


def _settings_store(config: str) -> SettingsStore:
    return SettingsStore(JsonFileStateStore(load_config(config).state_dir))


def _print_settings(store: SettingsStore) -> None:
    for key, value in store.get().to_blob().items():
        print(f"{key}: {value}")


@settings_app.command("show")
def settings_show(config: ConfigOption = "config.yaml") -> None:
    """Show the current settings."""
    _print_settings(_settings_store(config))


@settings_app.command("set")
def settings_set(
    theme: Annotated[Optional[Theme], typer.Option("--theme", help="Colour theme")] = None,
    show_awards: Annotated[Optional[bool], typer.Option("--show-awards/--hide-awards")] = None,
    show_thumbnails: Annotated[Optional[bool], typer.Option("--show-thumbnails/--hide-thumbnails")] = None,
    compact_mode: Annotated[Optional[bool], typer.Option("--compact/--no-compact")] = None,
    auto_refresh: Annotated[Optional[bool], typer.Option("--auto-refresh/--no-auto-refresh")] = None,
    refresh_interval_ms: Annotated[Optional[int], typer.Option("--refresh-interval-ms", min=1)] = None,
    config: ConfigOption = "config.yaml",
) -> None:
    """Change one or more settings."""
    changes = {
        "theme": theme,
        "show_awards": show_awards,
        "show_thumbnails": show_thumbnails,
        "compact_mode": compact_mode,
        "auto_refresh": auto_refresh,
        "refresh_interval_ms": refresh_interval_ms,
    }
    store = _settings_store(config)
    store.update({key: value for key, value in changes.items() if value is not None})
    _print_settings(store)


@settings_app.command("toggle-theme")
def settings_toggle_theme(config: ConfigOption = "config.yaml") -> None:
    """Switch between the light and dark theme."""
    store = _settings_store(config)
    print(f"theme: {store.toggle_theme().theme.value}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
