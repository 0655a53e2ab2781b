import click


@click.group()
def main() -> None:
    """SQL Sandbox - per-workspace PostgreSQL schemas for learning SQL."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from SQLSANDBOX_HOST or 0.0.0.0).")
@click.option("--port", default=None, type=int, help="Bind port (default: from SQLSANDBOX_PORT or 8000).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the HTTP API server."""
    import uvicorn

    from sqlsandbox.settings import SandboxSettings

    settings = SandboxSettings()

    uvicorn.run(
        "sqlsandbox.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
    )


@main.command()
@click.argument("workspace_id")
def reconcile(workspace_id: str) -> None:
    """Rebuild a workspace's missing namespace or tables from its metadata.

    Exits non-zero if any table could not be rebuilt.
    """
    import asyncio

    from sqlsandbox.log import setup_logging
    from sqlsandbox.settings import SandboxSettings

    settings = SandboxSettings()
    setup_logging(settings.log_level)
    if not settings.database_url:
        msg = "SQLSANDBOX_DATABASE_URL is not set."
        raise click.ClickException(msg)

    report = asyncio.run(_reconcile(settings.database_url, settings.resolve_sandbox_url(), workspace_id))
    if not report.reconstructed:
        click.echo(f"Workspace {workspace_id}: {report.message}")
        return

    summary = report.summary
    click.echo(
        f"Workspace {workspace_id}: rebuilt {summary.successful_tables}/{summary.total_tables} table(s)"
        f" in {report.namespace}"
    )
    from sqlsandbox.errors import PartialReconstructionError

    try:
        report.raise_for_failures()
    except PartialReconstructionError as exc:
        for failure in exc.failures:
            click.echo(f"  {failure.table_name}: {'; '.join(e.message for e in failure.errors)}", err=True)
        raise click.ClickException(exc.message) from None


async def _reconcile(database_url: str, sandbox_url: str, workspace_id: str):
    from sqlsandbox.db.engine import create_engine, create_session_factory
    from sqlsandbox.managers.workspaces import WorkspaceNotFoundError, open_workspace

    engine = create_engine(database_url, pool_size=1)
    sandbox = engine if sandbox_url == database_url else create_engine(sandbox_url, pool_size=1)
    try:
        async with create_session_factory(engine)() as db:
            _, report = await open_workspace(db, sandbox, workspace_id)
    except WorkspaceNotFoundError:
        msg = f"Workspace '{workspace_id}' not found."
        raise click.ClickException(msg) from None
    finally:
        if sandbox is not engine:
            await sandbox.dispose()
        await engine.dispose()
    return report


# ---------------------------------------------------------------------------
# Database management
# ---------------------------------------------------------------------------


def _alembic_config():
    """Build an Alembic Config from the package's alembic.ini.

    Both alembic.ini and the alembic/ directory live inside the package,
    so this works whether running from source or from an installed package.
    """
    from pathlib import Path

    from alembic.config import Config

    ini_path = Path(__file__).parent / "alembic.ini"
    return Config(str(ini_path))


@main.group()
def db() -> None:
    """Metadata store migration commands."""


@db.command()
@click.option("--revision", default="head", help="Target revision (default: head).")
def upgrade(revision: str) -> None:
    """Run database migrations forward."""
    from alembic import command

    command.upgrade(_alembic_config(), revision)
    click.echo(f"Database upgraded to {revision}.")


@db.command()
@click.option("--revision", default="-1", help="Target revision (default: -1, one step back).")
def downgrade(revision: str) -> None:
    """Roll back database migrations."""
    from alembic import command

    command.downgrade(_alembic_config(), revision)
    click.echo(f"Database downgraded to {revision}.")


@db.command()
@click.argument("message")
def migrate(message: str) -> None:
    """Autogenerate a new migration from model changes."""
    from alembic import command

    command.revision(_alembic_config(), message=message, autogenerate=True)
    click.echo(f"Migration generated: {message}")


@db.command()
def current() -> None:
    """Show current database revision."""
    from alembic import command

    command.current(_alembic_config(), verbose=True)


@db.command()
def history() -> None:
    """Show migration history."""
    from alembic import command

    command.history(_alembic_config(), verbose=True)


if __name__ == "__main__":
    main()
