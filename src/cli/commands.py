"""CLI command implementations for the token listing watcher."""

from __future__ import annotations

import json
import signal
import threading
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import click
import structlog
from pydantic import ValidationError

from src.models.config import Config, Pipeline
from src.services.database import Database
from src.utils.logger import configure_logging

if TYPE_CHECKING:
    from types import FrameType

    from src.services.notification_dispatcher import NotificationDispatcher
    from src.services.protocols import MonitorProtocol
    from src.services.token_listing_client import TokenListingClient

logger = structlog.get_logger(__name__)

PIPELINE_CHOICES = [pipeline.value for pipeline in Pipeline]
DEFAULT_SNAPSHOT_NAMESPACES = (Pipeline.SOCIALS.value, Pipeline.LAUNCHES.value)


def _get_config() -> Config:
    """Load configuration from .env file. Aborts on invalid configuration."""
    try:
        return Config()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration:\n{exc}") from exc


def _get_db(config: Config) -> Database:
    """Initialize database with schema."""
    db = Database(db_path=config.database_path)
    db.init_db()
    return db


def _build_client(config: Config) -> TokenListingClient:
    from src.services.token_listing_client import TokenListingClient

    return TokenListingClient(
        config.token_api_url,
        proxy_url=config.proxy_url,
        verify_tls=config.verify_tls,
        timeout=config.request_timeout,
    )


def _build_dispatcher(config: Config, pipeline: Pipeline) -> NotificationDispatcher:
    from src.services.discord_notifier import DiscordNotifier
    from src.services.notification_dispatcher import NotificationDispatcher
    from src.utils.http import create_session

    notifier = DiscordNotifier(
        config.webhook_for(pipeline),
        site_url=config.token_site_url,
        explorer_url=config.explorer_url,
        timeout=config.request_timeout,
        session=create_session(config.proxy_url, config.verify_tls),
    )
    return NotificationDispatcher(notifier, name=pipeline.value)


def _build_monitor(config: Config, pipeline: Pipeline) -> MonitorProtocol:
    """Wire one pipeline with its own client, database connection and state."""
    client = _build_client(config)
    dispatcher = _build_dispatcher(config, pipeline)
    db = _get_db(config)

    if pipeline == Pipeline.SOCIALS:
        from src.domains.socials.services.social_change_monitor import SocialChangeMonitor
        from src.repositories.token_repository import TokenRepository

        return SocialChangeMonitor(
            client,
            dispatcher,
            TokenRepository(db),
            max_pages=config.socials_max_pages,
        )

    if pipeline == Pipeline.MARKET_CAP:
        from src.domains.market_cap.repositories.threshold_ledger_repository import (
            ThresholdLedgerRepository,
        )
        from src.domains.market_cap.services.market_cap_monitor import MarketCapMonitor

        ledger_repo = ThresholdLedgerRepository(db) if config.persist_threshold_ledger else None
        return MarketCapMonitor(
            client,
            dispatcher,
            thresholds=config.market_cap_thresholds,
            ledger_repo=ledger_repo,
        )

    if pipeline == Pipeline.LAUNCHES:
        from src.domains.launches.services.launch_monitor import LaunchMonitor
        from src.repositories.seen_token_repository import SeenTokenRepository
        from src.repositories.token_repository import TokenRepository

        return LaunchMonitor(client, dispatcher, TokenRepository(db), SeenTokenRepository(db))

    from src.domains.freed.services.freed_monitor import FreedMonitor
    from src.repositories.seen_token_repository import SeenTokenRepository

    return FreedMonitor(
        client,
        dispatcher,
        SeenTokenRepository(db),
        recent_window=timedelta(minutes=config.freed_recent_window_minutes),
    )


def _require_webhooks(config: Config, pipelines: list[Pipeline]) -> None:
    """Abort before any loop starts if a selected pipeline has no webhook."""
    for pipeline in pipelines:
        try:
            config.webhook_for(pipeline)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc


def _print_summary(title: str, stats: dict[str, Any]) -> None:
    """Print a formatted summary of an operation's results."""
    click.echo(f"\n[SUCCESS] {title}")
    for key, value in stats.items():
        if key == "errors" and isinstance(value, list):
            if value:
                click.echo(f"  Errors ({len(value)}):")
                for error in value[:10]:
                    click.echo(f"    - {error}")
                if len(value) > 10:
                    click.echo(f"    ... and {len(value) - 10} more")
        else:
            click.echo(f"  {key}: {value}")


# --- Watchers ---


@click.command()
@click.option(
    "--pipeline",
    "-p",
    "pipelines",
    multiple=True,
    type=click.Choice(PIPELINE_CHOICES),
    help="Pipeline to run (repeatable). Defaults to all.",
)
def watch(pipelines: tuple[str, ...]) -> None:
    """Run watcher pipelines until interrupted."""
    config = _get_config()
    configure_logging(config.log_level)

    from src.services.scheduler import PollScheduler, run_schedulers

    selected = [Pipeline(name) for name in pipelines] or list(Pipeline)
    _require_webhooks(config, selected)

    stop_event = threading.Event()
    schedulers = []
    for pipeline in selected:
        low, high = config.interval_for(pipeline)
        schedulers.append(
            PollScheduler(_build_monitor(config, pipeline), low, high, stop_event=stop_event)
        )

    def _handle_signal(signum: int, frame: FrameType | None) -> None:
        logger.info("shutdown_requested", signal=signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    click.echo(f"[INFO] Watching: {', '.join(pipeline.value for pipeline in selected)}")
    results = run_schedulers(schedulers)
    _print_summary("Watchers stopped (cycles run)", results)


@click.command()
@click.option("--pipeline", "-p", required=True, type=click.Choice(PIPELINE_CHOICES))
@click.option(
    "--output-format",
    default="summary",
    type=click.Choice(["summary", "json"]),
    help="Output format",
)
def run_once(pipeline: str, output_format: str) -> None:
    """Run a single cycle of one pipeline and exit.

    The freed pipeline never alerts here: the first cycle of every process only
    records the tokens already listed. Use watch for freed alerts.
    """
    config = _get_config()
    configure_logging(config.log_level)
    selected = Pipeline(pipeline)
    _require_webhooks(config, [selected])

    monitor = _build_monitor(config, selected)
    try:
        events = monitor.run_cycle()
    finally:
        monitor.shutdown()

    if output_format == "json":
        click.echo(json.dumps([event.model_dump(mode="json") for event in events], indent=2))
        return
    click.echo(f"[INFO] {selected.value}: {len(events)} event(s)")
    for event in events:
        click.echo(f"  {event.event_type.value} | {event.token.name} | {event.token.address}")


# --- Snapshot maintenance ---


@click.command()
@click.option(
    "--namespace",
    "namespaces",
    multiple=True,
    default=DEFAULT_SNAPSHOT_NAMESPACES,
    show_default=True,
    help="Snapshot namespace to merge into (repeatable)",
)
def backfill_history(namespaces: tuple[str, ...]) -> None:
    """Crawl every listing page and merge it into token snapshots."""
    config = _get_config()
    configure_logging(config.log_level)
    db = _get_db(config)

    from src.domains.history.services.history_backfill import HistoryBackfill
    from src.repositories.token_repository import TokenRepository

    backfill = HistoryBackfill(
        _build_client(config),
        TokenRepository(db),
        list(namespaces),
        max_attempts=config.max_retry_attempts,
    )
    click.echo("[INFO] Crawling listing history...")
    result = backfill.run()
    _print_summary("History backfill complete", result)
    db.close()


@click.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option(
    "--namespace",
    "namespaces",
    multiple=True,
    default=DEFAULT_SNAPSHOT_NAMESPACES,
    show_default=True,
    help="Snapshot namespace to import into (repeatable)",
)
def import_tokens(path: str, namespaces: tuple[str, ...]) -> None:
    """Import a JSON token archive (e.g. a legacy tokens.json) into snapshots."""
    config = _get_config()
    configure_logging(config.log_level)

    from src.repositories.token_repository import TokenRepository
    from src.services.token_archive import load_token_archive

    try:
        tokens = load_token_archive(path)
    except (ValueError, ValidationError) as exc:
        raise click.ClickException(f"Invalid token archive {path}: {exc}") from exc

    db = _get_db(config)
    token_repo = TokenRepository(db)
    stats: dict[str, Any] = {"tokens_in_archive": len(tokens)}
    for namespace in namespaces:
        token_repo.upsert_tokens(namespace, tokens)
        stats[f"{namespace}_total"] = token_repo.count_tokens(namespace)
    _print_summary("Token import complete", stats)
    db.close()


@click.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--namespace", default=Pipeline.LAUNCHES.value, show_default=True)
def export_tokens(path: str, namespace: str) -> None:
    """Export one snapshot namespace to a JSON token archive."""
    config = _get_config()
    configure_logging(config.log_level)
    db = _get_db(config)

    from src.repositories.token_repository import TokenRepository
    from src.services.token_archive import dump_token_archive

    written = dump_token_archive(path, TokenRepository(db).get_tokens(namespace))
    _print_summary("Token export complete", {"namespace": namespace, "tokens": written})
    db.close()


@click.command()
@click.argument("address")
def show_token(address: str) -> None:
    """Display what every snapshot knows about a token address."""
    config = _get_config()
    configure_logging(config.log_level)
    db = _get_db(config)

    from src.repositories.seen_token_repository import SeenTokenRepository
    from src.repositories.token_repository import TokenRepository

    entries = TokenRepository(db).find_token(address)
    seen_repo = SeenTokenRepository(db)

    if not entries:
        click.echo(f"[INFO] {address} is not in any snapshot.")
    for namespace, token in entries:
        click.echo(f"\n[INFO] {namespace}: {token.name}")
        click.echo(f"  Twitter: {token.twitter or 'N/A'}")
        click.echo(f"  Telegram: {token.telegram or 'N/A'}")
        click.echo(f"  Website: {token.website or 'N/A'}")
        click.echo(f"  Market cap: {token.market_cap:,.0f}")
        click.echo(f"  Created: {token.create_date or 'N/A'}")
        click.echo(f"  Creator: {token.creator or 'N/A'}")

    flagged_namespace = f"{Pipeline.LAUNCHES.value}:flagged"
    click.echo(f"\n  Flagged as lookalike: {seen_repo.is_seen(flagged_namespace, address)}")
    click.echo(f"  Seen on freed page: {seen_repo.is_seen(Pipeline.FREED.value, address)}")
    db.close()


@click.command()
def check_health() -> None:
    """Check the listing API and every configured webhook."""
    config = _get_config()
    configure_logging(config.log_level)

    from src.utils.health_checks import check_listing_api_health, check_webhook_health
    from src.utils.http import create_session

    healthy = check_listing_api_health(_build_client(config))
    click.echo(f"  listing_api: {'OK' if healthy else 'FAILED'}")

    session = create_session(config.proxy_url, config.verify_tls)
    for pipeline in Pipeline:
        try:
            webhook = config.webhook_for(pipeline)
        except ValueError:
            click.echo(f"  {pipeline.value}_webhook: not configured")
            continue
        ok = check_webhook_health(webhook, session=session, timeout=config.request_timeout)
        healthy = healthy and ok
        click.echo(f"  {pipeline.value}_webhook: {'OK' if ok else 'FAILED'}")

    if not healthy:
        raise click.ClickException("Health check failed")
