"""chatguard CLI — administrator console for the moderation engine."""

from __future__ import annotations

import json
from dataclasses import asdict

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from chatguard import __version__
from chatguard.config import Settings
from chatguard.engine import Engine
from chatguard.errors import ChatguardError

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option("--store", type=click.Choice(["json", "mongo", "memory"]), default=None, help="Storage backend")
@click.option("--data-dir", default=None, help="Directory for the JSON store")
@click.option("--admin", "admin_id", default="cli", help="Administrator id recorded in the audit trail")
@click.pass_context
def main(ctx: click.Context, store: str | None, data_dir: str | None, admin_id: str):
    """chatguard — moderation and session state for stranger video chat.

    Inspect and change user restrictions, triage reports and watch live calls.
    Settings default to the CHATGUARD_* environment variables.
    """
    settings = Settings.from_env()
    if store:
        settings.store = store
    if data_dir:
        settings.data_dir = data_dir
    ctx.obj = {"settings": settings, "admin_id": admin_id}


def _run(ctx: click.Context, fn):
    """Open the engine, run ``fn(engine)``, and turn engine errors into exit code 1."""
    try:
        with Engine.open(ctx.obj["settings"]) as engine:
            return fn(engine)
    except ChatguardError as e:
        console.print(f"[red]{type(e).__name__}:[/] {e}")
        ctx.exit(1)


# ── Status ───────────────────────────────────────────────────────────


@main.command()
@click.argument("user_id")
@click.pass_context
def status(ctx: click.Context, user_id: str):
    """Show the effective access status of USER_ID."""

    def _show(engine: Engine):
        result = engine.resolver.resolve(user_id)
        if result.banned:
            console.print(f"  [red]BANNED[/] {user_id}")
        elif result.quarantined:
            console.print(f"  [yellow]QUARANTINED[/] {user_id} until {result.quarantine_end_time}")
        else:
            console.print(f"  [green]FREE[/] {user_id}")

    _run(ctx, _show)


# ── Moderation ───────────────────────────────────────────────────────


@main.command()
@click.argument("user_id")
@click.option("--reason", "-r", default=None, help="Reason recorded on the ban")
@click.pass_context
def ban(ctx: click.Context, user_id: str, reason: str | None):
    """Ban USER_ID until explicitly unbanned."""

    def _ban(engine: Engine):
        b = engine.moderation.ban(user_id, reason, admin_id=ctx.obj["admin_id"])
        console.print(f"  [red]Banned[/] {user_id}: {b.reason}")

    _run(ctx, _ban)


@main.command()
@click.argument("user_id")
@click.pass_context
def unban(ctx: click.Context, user_id: str):
    """Lift any ban on USER_ID."""

    def _unban(engine: Engine):
        if engine.moderation.unban(user_id, admin_id=ctx.obj["admin_id"]):
            console.print(f"  [green]Unbanned[/] {user_id}")
        else:
            console.print(f"[yellow]No such user:[/] {user_id}")

    _run(ctx, _unban)


@main.command()
@click.argument("user_id")
@click.option("--reason", "-r", default=None, help="Reason recorded on the quarantine")
@click.option("--level", "-l", default=1, type=int, show_default=True, help="Severity level")
@click.pass_context
def quarantine(ctx: click.Context, user_id: str, reason: str | None, level: int):
    """Quarantine USER_ID for the window of the given severity LEVEL."""

    def _quarantine(engine: Engine):
        q = engine.moderation.quarantine(user_id, reason, level, admin_id=ctx.obj["admin_id"])
        console.print(f"  [yellow]Quarantined[/] {user_id} (level {q.level}) until {q.end_time}")

    _run(ctx, _quarantine)


@main.command()
@click.argument("user_id")
@click.pass_context
def unquarantine(ctx: click.Context, user_id: str):
    """Remove USER_ID from quarantine."""

    def _unquarantine(engine: Engine):
        if engine.moderation.unquarantine(user_id, admin_id=ctx.obj["admin_id"]):
            console.print(f"  [green]Released[/] {user_id}")
        else:
            console.print(f"[yellow]No such user:[/] {user_id}")

    _run(ctx, _unquarantine)


# ── Reports ──────────────────────────────────────────────────────────


@main.command()
@click.option("--all", "show_all", is_flag=True, help="Include reports that are no longer pending")
@click.pass_context
def reports(ctx: click.Context, show_all: bool):
    """List pending (or all) reports."""

    def _list(engine: Engine):
        items = engine.reports.list("all" if show_all else "pending")
        if not items:
            console.print("[yellow]No reports.[/]")
            return

        table = Table(title=f"Reports ({len(items)})")
        table.add_column("ID", style="dim")
        table.add_column("Reported", style="cyan")
        table.add_column("By")
        table.add_column("Status")
        table.add_column("Reason")
        for r in items:
            table.add_row(r.id, r.reported_id, r.reporter_id, r.status.value, r.reason[:50])
        console.print(table)

    _run(ctx, _list)


@main.command(name="report-status")
@click.argument("report_id")
@click.argument("new_status", type=click.Choice(["pending", "reviewed", "dismissed", "actioned"]))
@click.pass_context
def report_status(ctx: click.Context, report_id: str, new_status: str):
    """Move REPORT_ID to NEW_STATUS."""

    def _update(engine: Engine):
        r = engine.reports.update_status(report_id, new_status)
        console.print(f"  {r.id} -> [cyan]{r.status.value}[/]")

    _run(ctx, _update)


# ── Calls / users / stats ────────────────────────────────────────────


@main.command()
@click.pass_context
def calls(ctx: click.Context):
    """Show live calls with their running duration."""

    def _calls(engine: Engine):
        active = engine.calls.list_active()
        if not active:
            console.print("[yellow]No active calls.[/]")
            return

        table = Table(title=f"Active calls ({len(active)})")
        table.add_column("Call", style="cyan")
        table.add_column("User 1")
        table.add_column("User 2")
        table.add_column("Duration", justify="right", style="green")
        for c in active:
            table.add_row(c.id, c.user1_id, c.user2_id, f"{c.duration}s")
        console.print(table)

    _run(ctx, _calls)


@main.command()
@click.option(
    "--filter", "-f", "user_filter",
    default="all",
    type=click.Choice(["all", "active", "online", "banned", "quarantined"]),
)
@click.pass_context
def users(ctx: click.Context, user_filter: str):
    """List users, optionally filtered by state."""

    def _users(engine: Engine):
        items = engine.dashboard.list_users(user_filter)
        if not items:
            console.print("[yellow]No matching users.[/]")
            return

        table = Table(title=f"Users: {user_filter} ({len(items)})")
        table.add_column("ID", style="cyan")
        table.add_column("Country")
        table.add_column("Connected", justify="center")
        table.add_column("Reports", justify="right")
        table.add_column("Last seen")
        for u in items:
            connected = "[green]Y[/]" if u.connected else "[red]N[/]"
            table.add_row(u.id, u.country or "", connected, str(u.report_count), u.last_seen)
        console.print(table)

    _run(ctx, _users)


@main.command()
@click.pass_context
def stats(ctx: click.Context):
    """Print headline dashboard numbers."""

    def _stats(engine: Engine):
        s = engine.dashboard.stats()
        lines = [f"{k.replace('_', ' ')}: {v}" for k, v in asdict(s).items()]
        console.print(Panel("\n".join(lines), title="chatguard stats"))

    _run(ctx, _stats)


@main.command()
@click.option("--user", "user_id", default=None, help="Only actions on this user")
@click.option("--format", "fmt", default="table", type=click.Choice(["table", "json", "csv"]))
@click.option("--limit", default=50, show_default=True)
@click.pass_context
def history(ctx: click.Context, user_id: str | None, fmt: str, limit: int):
    """Show the moderator action audit trail."""

    def _history(engine: Engine):
        if fmt != "table":
            click.echo(engine.audit.export(fmt, user_id=user_id, limit=limit))
            return
        entries = engine.audit.history(user_id=user_id, limit=limit)
        if not entries:
            console.print("[yellow]No moderator actions recorded.[/]")
            return

        table = Table(title=f"Moderator actions ({len(entries)})")
        table.add_column("When", style="dim")
        table.add_column("Admin")
        table.add_column("Action", style="cyan")
        table.add_column("User")
        table.add_column("Reason")
        for e in entries:
            table.add_row(e.timestamp, e.admin_id, e.action, e.user_id, e.reason[:40])
        console.print(table)

    _run(ctx, _history)


@main.command(name="policy")
@click.pass_context
def dump_policy(ctx: click.Context):
    """Print the active quarantine policy as JSON."""
    policy = ctx.obj["settings"].load_policy()
    console.print(json.dumps(asdict(policy), indent=2))


if __name__ == "__main__":
    main()
