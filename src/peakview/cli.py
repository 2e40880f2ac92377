"""CLI for Peakview."""

import asyncio
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import click
import structlog

from peakview.config.logging import configure_logging
from peakview.core.exceptions import InvalidCredentialError, RemoteRepositoryError
from peakview.core.models.folder import SyncStatus

logger = structlog.get_logger(__name__)


def run_async(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def _create_services(settings=None):
    """Create the indexing and account services sharing one set of stores."""
    from peakview.cloud import SyncStatusClassifier
    from peakview.config.settings import get_settings
    from peakview.git import RemoteConfigParser
    from peakview.pipelines.indexation import FolderIndexer
    from peakview.remote import AiohttpTransport, RemoteRepositoryClient
    from peakview.repositories import StoreFactory
    from peakview.services import AccountService, FolderIndexingService

    if settings is None:
        settings = get_settings()

    factory = StoreFactory(settings)
    repository_cache = factory.get_remote_repository_cache()
    transport = AiohttpTransport(timeout=settings.request_timeout)
    client = RemoteRepositoryClient(
        transport=transport,
        cache=repository_cache,
        api_base_url=settings.api_base_url,
        page_size=settings.page_size,
    )
    executor = ThreadPoolExecutor(max_workers=settings.scan_workers, thread_name_prefix="peakview-scan")
    indexer = FolderIndexer(
        folder_cache=factory.get_folder_index_cache(),
        repository_cache=repository_cache,
        classifier=SyncStatusClassifier(sample_limit=settings.sample_file_limit),
        remote_parser=RemoteConfigParser(
            poll_attempts=settings.download_poll_attempts,
            poll_interval=settings.download_poll_interval,
        ),
        executor=executor,
        slow_detection_threshold=settings.slow_detection_threshold,
    )
    indexing_service = FolderIndexingService(
        indexer=indexer,
        client=client,
        repository_cache=repository_cache,
        folder_settings=factory.get_folder_settings_store(),
        credential_provider=lambda: settings.token,
    )
    account_service = AccountService(client=client, cache=repository_cache)

    async def close() -> None:
        await transport.close()
        executor.shutdown(wait=True)

    return indexing_service, account_service, factory, close


def _resolve_roots(roots: tuple[str, ...]) -> list[str]:
    from peakview.config.settings import get_settings

    resolved = list(roots) or get_settings().watched_roots
    if not resolved:
        click.echo("Error: no watched roots (pass ROOTS or set PEAKVIEW_WATCHED_ROOTS)", err=True)
        sys.exit(1)
    return [str(Path(root).expanduser().resolve()) for root in resolved]


def _echo_entry(entry) -> None:
    status = "local" if entry.sync_status is SyncStatus.LOCAL else "online"
    link = " [linked]" if entry.is_linked else ""
    remote = f"  {entry.display_name}" if entry.display_name else ""
    modified = entry.modification_time.astimezone().strftime("%Y-%m-%d %H:%M")
    click.echo(f"  [{status:>6}] {modified}  {entry.name}{remote}{link}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """Peakview: index project folders across watched roots."""
    from peakview.config.settings import get_settings

    settings = get_settings()
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, json_logs=settings.json_logs)


@cli.command()
@click.argument("roots", nargs=-1)
@click.option("--all", "show_all", is_flag=True, help="Include hidden folders")
@click.option("--offline", is_flag=True, help="Skip the repository refresh")
def scan(roots: tuple[str, ...], show_all: bool, offline: bool) -> None:
    """List the project folders of the watched roots."""
    watched = _resolve_roots(roots)

    async def _scan():
        indexing_service, _, _, close = _create_services()
        try:
            entries = await indexing_service.scan(watched, refresh_remote=not offline)
            if not show_all:
                entries = indexing_service.visible_entries(entries)
            click.echo(f"Found {len(entries)} folders:")
            for entry in entries:
                _echo_entry(entry)
            if indexing_service.last_error is not None:
                click.echo(f"\nWarning: {indexing_service.last_error.message}", err=True)
        finally:
            await close()

    run_async(_scan())


@cli.command()
@click.argument("roots", nargs=-1)
def refresh(roots: tuple[str, ...]) -> None:
    """Re-detect every folder, ignoring the folder cache."""
    watched = _resolve_roots(roots)

    async def _refresh():
        indexing_service, _, _, close = _create_services()
        try:
            entries = await indexing_service.scan(watched, refresh_remote=False)
            click.echo(f"Refreshing {len(entries)} folders...")
            updated = await indexing_service.refresh_all(entries, on_update=_echo_entry)
            click.echo(f"{updated} folders changed")
        finally:
            await close()

    run_async(_refresh())


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Ignore the refresh interval and revision tag")
def repos(force: bool) -> None:
    """List the connected account's repositories."""

    async def _repos():
        indexing_service, _, _, close = _create_services()
        try:
            try:
                repositories = await indexing_service.fetch_repositories(force_refresh=force)
            except RemoteRepositoryError as e:
                click.echo(f"Error: {e.message}", err=True)
                repositories = indexing_service.repositories
                if not repositories:
                    sys.exit(1)
            login = indexing_service.account_login or "unknown account"
            click.echo(f"{len(repositories)} repositories ({login}):")
            for repo in repositories:
                visibility = "private" if repo.is_private else "public"
                click.echo(f"  {repo.full_name} ({visibility})")
        finally:
            await close()

    run_async(_repos())


@cli.command()
@click.argument("roots", nargs=-1)
def uncloned(roots: tuple[str, ...]) -> None:
    """List repositories with no local folder."""
    watched = _resolve_roots(roots)

    async def _uncloned():
        indexing_service, _, _, close = _create_services()
        try:
            entries = await indexing_service.scan(watched)
            missing = indexing_service.uncloned_repos(entries)
            click.echo(f"{len(missing)} repositories not cloned:")
            for repo in missing:
                pushed = repo.pushed_at.strftime("%Y-%m-%d") if repo.pushed_at else "never"
                click.echo(f"  {repo.full_name}  (pushed {pushed})  {repo.clone_url}")
        finally:
            await close()

    run_async(_uncloned())


@cli.command()
@click.option("--token", prompt=True, hide_input=True, envvar="PEAKVIEW_TOKEN", help="Access token")
def connect(token: str) -> None:
    """Validate a token and cache the account's repositories."""

    async def _connect():
        _, account_service, _, close = _create_services()
        try:
            user = await account_service.connect(token)
            click.echo(f"Connected as {user.login}")
        except InvalidCredentialError as e:
            click.echo(f"Error: {e.message} The token was not saved.", err=True)
            sys.exit(1)
        except RemoteRepositoryError as e:
            click.echo(f"Error: {e.message}", err=True)
            sys.exit(1)
        finally:
            await close()

    run_async(_connect())


@cli.command()
def disconnect() -> None:
    """Forget the cached account data."""

    async def _disconnect():
        _, account_service, _, close = _create_services()
        try:
            account_service.disconnect()
            click.echo("Disconnected")
        finally:
            await close()

    run_async(_disconnect())


@cli.command()
@click.argument("path")
def hide(path: str) -> None:
    """Hide a folder from listings."""
    _set_hidden(path, True)


@cli.command()
@click.argument("path")
def unhide(path: str) -> None:
    """Show a previously hidden folder again."""
    _set_hidden(path, False)


def _set_hidden(path: str, hidden: bool) -> None:
    from peakview.config.settings import get_settings
    from peakview.repositories import StoreFactory

    folder = Path(path).expanduser().resolve()
    StoreFactory(get_settings()).get_folder_settings_store().set_hidden(folder, hidden)
    click.echo(f"{'Hidden' if hidden else 'Visible'}: {folder}")


@cli.command("clear-cache")
def clear_cache() -> None:
    """Delete the folder index cache."""
    from peakview.config.settings import get_settings
    from peakview.repositories import StoreFactory

    StoreFactory(get_settings()).get_folder_index_cache().clear()
    click.echo("Folder cache cleared")


if __name__ == "__main__":
    cli()
