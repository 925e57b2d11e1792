"""SpamGuard CLI: run sweeps, inspect cases and act on them from a shell."""

import logging
import time

import click
from rich.console import Console
from rich.table import Table

from spamguard import __version__

console = Console()


def _guard(ctx: click.Context):
    from spamguard.config import load_settings
    from spamguard.container import SpamGuard
    from spamguard.exceptions import ConfigurationError

    if "guard" not in ctx.obj:
        try:
            settings = load_settings(ctx.obj.get("config"))
        except ConfigurationError as e:
            console.print(f"[red]Invalid configuration:[/] {e}")
            ctx.exit(1)
        ctx.obj["guard"] = SpamGuard(settings, inline=True)
        ctx.call_on_close(ctx.obj["guard"].close)
    return ctx.obj["guard"]


def _require_active(ctx: click.Context, guard) -> None:
    if not guard.settings.active:
        console.print("[yellow]Akismet is disabled or has no API key; nothing to do.[/]")
        ctx.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", default=None, help="Path to config.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx: click.Context, config: str | None, verbose: bool):
    """SpamGuard: Akismet spam screening for forum posts and user bios."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ── Screening ────────────────────────────────────────────────────────


@main.command()
@click.option("--limit", "-n", default=None, type=int, help="Max posts to check")
@click.pass_context
def sweep(ctx: click.Context, limit: int | None):
    """Check pending posts against Akismet."""
    guard = _guard(ctx)
    _require_active(ctx, guard)
    count = guard.handler.sweep(limit=limit)
    console.print(f"[bold blue]SpamGuard[/] quarantined [red]{count}[/] post(s)")


@main.command(name="check-post")
@click.argument("post_id", type=int)
@click.pass_context
def check_post(ctx: click.Context, post_id: int):
    """Check a single post right away."""
    guard = _guard(ctx)
    _require_active(ctx, guard)
    guard.handler.check_post(post_id)
    state = guard.post_states.state_of(post_id)
    console.print(f"Post {post_id}: [cyan]{state.value if state else 'not tracked'}[/]")


@main.command(name="check-users")
@click.option("--limit", "-n", default=None, type=int, help="Max users to check")
@click.pass_context
def check_users(ctx: click.Context, limit: int | None):
    """Check pending user bios against Akismet."""
    guard = _guard(ctx)
    _require_active(ctx, guard)
    count = guard.bouncer.sweep(limit=limit)
    console.print(f"[bold blue]SpamGuard[/] flagged [red]{count}[/] user(s)")


@main.command(name="verify-key")
@click.pass_context
def verify_key(ctx: click.Context):
    """Ask Akismet whether the configured key is valid."""
    from spamguard.exceptions import SpamGuardError

    guard = _guard(ctx)
    try:
        with guard.client_factory(guard.settings) as client:
            valid = client.verify_key()
    except SpamGuardError as e:
        console.print(f"[red]Could not verify key:[/] {e}")
        ctx.exit(1)
    if valid:
        console.print("[green]v[/] Akismet key is valid")
    else:
        console.print("[red]x[/] Akismet rejected the key")
        ctx.exit(1)


@main.command()
@click.option("--interval", "-i", default=300.0, type=float, help="Seconds between sweeps")
@click.option("--once", is_flag=True, help="Run a single round and exit")
@click.pass_context
def worker(ctx: click.Context, interval: float, once: bool):
    """Sweep posts and users on a fixed interval."""
    guard = _guard(ctx)
    _require_active(ctx, guard)
    console.print(f"[bold blue]SpamGuard[/] worker started (every {interval:g}s)")
    try:
        while True:
            guard.schedule_sweeps()
            if once:
                break
            time.sleep(interval)
    except KeyboardInterrupt:
        console.print("\nStopping worker")


# ── Reviews ──────────────────────────────────────────────────────────


@main.command()
@click.option(
    "--status",
    "-s",
    default="pending",
    type=click.Choice(["pending", "approved", "rejected", "ignored", "deleted", "all"]),
)
@click.pass_context
def cases(ctx: click.Context, status: str):
    """List moderation cases."""
    from spamguard.reviews.models import CaseStatus

    guard = _guard(ctx)
    found = guard.cases.list_cases(status=None if status == "all" else CaseStatus(status))
    if not found:
        console.print("[yellow]No cases.[/]")
        return

    table = Table(title=f"Moderation cases ({len(found)})")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Target", justify="right")
    table.add_column("Status")
    table.add_column("Reasons")
    table.add_column("Created")

    for case in found:
        table.add_row(
            case.id,
            case.case_type.value,
            f"{case.target_type} {case.target_id}",
            case.status.value,
            ", ".join(s.reason for s in case.scores),
            case.created_at[:19],
        )
    console.print(table)


@main.command()
@click.argument("case_id")
@click.argument(
    "action",
    type=click.Choice(["confirm_spam", "not_spam", "ignore", "confirm_delete", "delete_user"]),
)
@click.option("--moderator", "-m", default=-1, type=int, help="Acting moderator's user id")
@click.pass_context
def decide(ctx: click.Context, case_id: str, action: str, moderator: int):
    """Apply a moderator ACTION to a case."""
    from spamguard.exceptions import CaseNotFoundError, InvalidActionError

    guard = _guard(ctx)
    try:
        case = guard.reviews.perform(case_id, action, moderator)
    except (CaseNotFoundError, InvalidActionError) as e:
        console.print(f"[red]{e}[/]")
        ctx.exit(1)
    console.print(f"Case {case.id} is now [cyan]{case.status.value}[/]")


@main.command()
@click.argument("user_id", type=int)
@click.argument("ip")
@click.pass_context
def anonymize(ctx: click.Context, user_id: int, ip: str):
    """Replace the stored IP on USER_ID's posts and profile."""
    from spamguard.models.events import UserAnonymizedEvent

    guard = _guard(ctx)
    guard.trigger(UserAnonymizedEvent(user_id, anonymize_ip=ip))
    console.print(f"Anonymized stored IPs for user {user_id}")


@main.command()
@click.option("--staff", is_flag=True, help="Only moderator actions")
@click.option("--limit", "-n", default=50, type=int)
@click.pass_context
def history(ctx: click.Context, staff: bool, limit: int):
    """Show recent screening and moderation decisions."""
    guard = _guard(ctx)
    entries = guard.history.staff_actions(limit) if staff else guard.history.get_entries(limit=limit)
    if not entries:
        console.print("[yellow]No history yet.[/]")
        return

    table = Table(title="Decision history")
    table.add_column("When", style="dim")
    table.add_column("Actor", justify="right")
    table.add_column("Action", style="cyan")
    table.add_column("Target")
    for e in entries:
        table.add_row(e.timestamp[:19], str(e.actor_id), e.action, f"{e.target_type} {e.target_id}")
    console.print(table)


# ── Webhooks ─────────────────────────────────────────────────────────


@main.group()
def webhooks():
    """Manage outbound webhooks."""


@webhooks.command(name="add")
@click.argument("url")
@click.option("--event", "-e", "events", multiple=True, required=True, help="Event to subscribe to")
@click.option("--secret", default="", help="HMAC signing secret")
@click.pass_context
def add_webhook(ctx: click.Context, url: str, events: tuple, secret: str):
    guard = _guard(ctx)
    try:
        wh = guard.webhooks.register(url, list(events), secret=secret)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        ctx.exit(1)
    console.print(f"[green]Registered webhook[/] {wh.id} -> {wh.url}")


@webhooks.command(name="list")
@click.pass_context
def list_webhooks(ctx: click.Context):
    guard = _guard(ctx)
    hooks = guard.webhooks.list_webhooks()
    if not hooks:
        console.print("[yellow]No webhooks registered.[/]")
        return
    table = Table(title="Webhooks")
    table.add_column("ID", style="dim")
    table.add_column("URL", style="cyan")
    table.add_column("Events")
    table.add_column("Active")
    for wh in hooks:
        table.add_row(wh.id, wh.url, ", ".join(wh.events), "yes" if wh.active else "no")
    console.print(table)


if __name__ == "__main__":
    main()
