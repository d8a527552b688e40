"""CLI entry point for the SaloGames admin client.

Usage:
    python -m salo login --email admin@salo.gg
    python -m salo analytics
    python -m salo participants --status unverified --type team
    python -m salo live --watch
    python -m salo control start 65f0c2...
    python -m salo control placement 65f0c2... --rank 1 --team 65f0d1...
    python -m salo offers toggle 65f0e3...
    python -m salo export --format pdf --type event-summary
    python -m salo leaderboard --follow
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.table import Table

from salo.config import get_settings
from salo.errors import SaloError

app = typer.Typer(help="SaloGames admin CLI", invoke_without_command=True)
events_app = typer.Typer(help="Create, list and delete events")
control_app = typer.Typer(help="Live event controls")
offers_app = typer.Typer(help="Offer management")
app.add_typer(events_app, name="events")
app.add_typer(control_app, name="control")
app.add_typer(offers_app, name="offers")

console = Console()


@app.callback()
def _callback() -> None:
    """Admin dashboard for SaloGames events, offers and reports."""


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _on_unauthorized() -> None:
    console.print("[yellow]⚠ Session expired. Sign in again with `salo login`.[/yellow]")


def _gateway():
    from salo.api.gateway import Gateway

    return Gateway(on_unauthorized=_on_unauthorized)


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _refresh_or_exit(view) -> None:
    if not view.refresh():
        _fail(view.error or "Request failed")


# ======================================================================
# Session
# ======================================================================


@app.command()
def login(
    email: Optional[str] = typer.Option(None, "--email", help="Admin email"),
    password: Optional[str] = typer.Option(None, "--password", help="Password (prompted if omitted)"),
    id_token: Optional[str] = typer.Option(None, "--id-token", help="Use an existing Firebase ID token"),
    uid: Optional[str] = typer.Option(None, "--uid", help="Firebase uid for --id-token"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    """Sign in with Firebase and store the backend session token."""
    _setup_logging(log_level)
    from salo.api.auth import FirebaseIdentity, exchange_token, sign_in_with_password

    gw = _gateway()
    try:
        if id_token:
            if not (email and uid):
                _fail("--id-token needs --email and --uid")
            identity = FirebaseIdentity(uid=uid, email=email, id_token=id_token)
        else:
            if not email:
                email = typer.prompt("Email")
            if not password:
                password = typer.prompt("Password", hide_input=True)
            identity = sign_in_with_password(email, password)
        user = exchange_token(gw, identity)
    except SaloError as e:
        _fail(f"Login failed: {e.message}")
        return

    console.print(f"[green]✓ Signed in as {user.get('email', identity.email)} ({user.get('role')})[/green]")


@app.command()
def logout() -> None:
    """Forget the stored session token."""
    from salo.api.auth import logout as do_logout
    from salo.session import SessionStore

    do_logout(SessionStore())
    console.print("[green]✓ Signed out[/green]")


@app.command()
def whoami() -> None:
    """Show the signed-in user's profile."""
    from salo.api.auth import fetch_profile

    try:
        profile = fetch_profile(_gateway())
    except SaloError as e:
        _fail(e.message)
        return
    table = Table(title="Profile", show_header=False)
    for key in ("name", "email", "role", "membershipType"):
        if key in profile:
            table.add_row(key, str(profile[key]))
    console.print(table)


# ======================================================================
# Analytics & participants
# ======================================================================


@app.command()
def analytics(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    """Event and participation summary with the 30-day trend."""
    _setup_logging(log_level)
    from salo.views import AnalyticsView

    view = AnalyticsView(_gateway())
    _refresh_or_exit(view)
    snap = view.snapshot

    table = Table(title="Event Analytics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total events", f"{snap.total_events} (team {snap.team_events} | solo {snap.single_events})")
    table.add_row(
        "Total participants",
        f"{snap.total_participants} (team {snap.team_participants} | solo {snap.solo_participants})",
    )
    table.add_row("Verified / unverified", f"{snap.verified_count} / {snap.unverified_count}")
    table.add_row("Verification rate", f"{snap.verification_rate:.1f}%")
    console.print(table)
    if snap.is_estimated:
        console.print(f"[yellow]⚠ Estimated values (no data yet): {', '.join(snap.estimated_fields)}[/yellow]")

    trend = Table(title=f"Participation Trend ({view.trend.source})")
    trend.add_column("Date")
    trend.add_column("Participants", justify="right")
    for p in view.trend.points:
        trend.add_row(p.date.isoformat(), str(p.participants))
    console.print(trend)
    if view.trend.is_synthetic:
        console.print("[yellow]⚠ Trend is synthetic, not measured data[/yellow]")


@app.command()
def participants(
    search: str = typer.Option("", "--search", help="Match email, event or team"),
    status: str = typer.Option("all", "--status", help="all, verified or unverified"),
    kind: str = typer.Option("all", "--type", help="all, team or individual"),
) -> None:
    """List registrants across events and teams."""
    if status not in ("all", "verified", "unverified"):
        _fail(f"Unknown status: {status}")
    if kind not in ("all", "team", "individual"):
        _fail(f"Unknown type: {kind}")
    from salo.views import ParticipantsView

    view = ParticipantsView(_gateway())
    _refresh_or_exit(view)
    rows = view.filtered(search, status, kind)

    table = Table(title=f"Participants ({len(rows)} of {view.stats.total})")
    table.add_column("Email")
    table.add_column("Event")
    table.add_column("Team")
    table.add_column("Type")
    table.add_column("Verified")
    for p in rows:
        table.add_row(
            p.email, p.event_name, p.team_name or "-", p.kind,
            "[green]yes[/green]" if p.verified else "[yellow]pending[/yellow]",
        )
    console.print(table)
    s = view.stats
    console.print(
        f"verified={s.verified} unverified={s.unverified} team={s.team} "
        f"individual={s.solo} pending={s.pending}"
    )


# ======================================================================
# Events
# ======================================================================


@events_app.command("list")
def events_list() -> None:
    """List all events."""
    from salo.views import EventsView

    view = EventsView(_gateway())
    _refresh_or_exit(view)
    table = Table(title="Events")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Starts")
    table.add_column("Status")
    for e in view.events:
        starts = e.start_date_time.strftime("%Y-%m-%d %H:%M") if e.start_date_time else "-"
        table.add_row(e.id, e.event_name, e.category_label, starts, e.status_label)
    console.print(table)


@events_app.command("create")
def events_create(
    name: str = typer.Option(..., "--name"),
    category: str = typer.Option("team-battle", "--category", help="team-battle or single-battle"),
    start: datetime = typer.Option(..., "--start", help="Start, e.g. 2026-11-01T18:00"),
    end: datetime = typer.Option(..., "--end", help="End, e.g. 2026-11-01T22:00"),
    description: str = typer.Option(..., "--description"),
    image: str = typer.Option(..., "--image", help="Image URL"),
    teams: Optional[int] = typer.Option(None, "--teams", help="Number of teams (team battle)"),
    per_team: Optional[int] = typer.Option(None, "--per-team", help="Players per team (team battle)"),
    spots: Optional[int] = typer.Option(None, "--spots", help="Total spots (single battle)"),
) -> None:
    """Create an event."""
    from salo.views import EventsView

    view = EventsView(_gateway())
    ok = view.create({
        "event_name": name,
        "category": category,
        "start_date_time": start,
        "end_date_time": end,
        "description": description,
        "image": image,
        "number_of_teams": teams,
        "participation_per_team": per_team,
        "total_spots": spots,
    })
    if not ok:
        raise typer.Exit(1)


@events_app.command("delete")
def events_delete(event_id: str = typer.Argument(..., help="Event ID")) -> None:
    """Delete an event."""
    from salo.views import EventsView

    if not EventsView(_gateway()).delete(event_id):
        raise typer.Exit(1)


# ======================================================================
# Live events
# ======================================================================


def _live_table(view) -> Table:
    from salo.live.controller import time_remaining

    stats = view.stats()
    table = Table(
        title=(
            f"Live Events: live {stats['live_events']} | participants "
            f"{stats['active_participants']} | matches {stats['total_matches']} | "
            f"referees {stats['referees_active']}"
        ),
    )
    table.add_column("ID", style="dim")
    table.add_column("Event")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Entrants", justify="right")
    table.add_column("Remaining")
    table.add_column("Referee")
    table.add_column("Actions")
    for e in view.live_events:
        table.add_row(
            e.id,
            e.event_name,
            "Team" if e.category.value == "team-battle" else "Solo",
            e.status.value.replace("_", " "),
            str(len(e.entrants)) if e.has_participants else "waiting",
            time_remaining(e.end_date_time),
            e.referee or "-",
            ", ".join(e.actions) or "-",
        )
    if view.error:
        table.caption = f"[red]{view.error}[/red] (showing last good data)"
    return table


@app.command()
def live(
    watch: bool = typer.Option(False, "--watch", help="Keep refreshing until Ctrl-C"),
    interval: Optional[float] = typer.Option(None, "--interval", help="Seconds between refreshes"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    """Show live events with their available controls."""
    _setup_logging(log_level)
    from salo.views import LiveEventsView

    view = LiveEventsView(_gateway())
    if not watch:
        _refresh_or_exit(view)
        console.print(_live_table(view))
        return

    view.watch(interval)
    try:
        with Live(_live_table(view), console=console, refresh_per_second=1) as screen:
            while True:
                time.sleep(1)
                screen.update(_live_table(view))
    except KeyboardInterrupt:
        pass
    finally:
        view.close()


def _live_view_with(event_id: str):
    from salo.views import LiveEventsView

    view = LiveEventsView(_gateway())
    _refresh_or_exit(view)
    event = view.find(event_id)
    if event is None:
        _fail(f"No event with id {event_id}")
    return view, event


def _run_control(event_id: str, action: str) -> None:
    view, event = _live_view_with(event_id)
    try:
        view.controller.control(event, action)
    except SaloError as e:
        _fail(e.message)
    new = view.find(event_id)
    if new is not None:
        console.print(f"Status: [bold]{new.status.value.replace('_', ' ')}[/bold]")


@control_app.command("start")
def control_start(event_id: str = typer.Argument(..., help="Event ID")) -> None:
    """Start or resume an event."""
    _run_control(event_id, "start")


@control_app.command("pause")
def control_pause(event_id: str = typer.Argument(..., help="Event ID")) -> None:
    """Pause a running event."""
    _run_control(event_id, "pause")


@control_app.command("end")
def control_end(event_id: str = typer.Argument(..., help="Event ID")) -> None:
    """End a running event."""
    _run_control(event_id, "end")


@control_app.command("placement")
def control_placement(
    event_id: str = typer.Argument(..., help="Event ID"),
    rank: int = typer.Option(..., "--rank", help="1, 2 or 3"),
    team: Optional[str] = typer.Option(None, "--team", help="Team ID"),
    email: Optional[str] = typer.Option(None, "--email", help="Participant email"),
) -> None:
    """Award a placement to a team or participant."""
    view, event = _live_view_with(event_id)
    try:
        view.controller.award_placement(event.source, rank, team_id=team, participant_email=email)
    except SaloError as e:
        _fail(e.message)


@control_app.command("referee")
def control_referee(
    event_id: str = typer.Argument(..., help="Event ID"),
    email: str = typer.Argument(..., help="Referee email"),
) -> None:
    """Assign a referee to an event."""
    view, event = _live_view_with(event_id)
    try:
        view.controller.assign_referee(event, email)
    except SaloError as e:
        _fail(e.message)


# ======================================================================
# Offers & catalog
# ======================================================================


def _offers_table(offers) -> Table:
    table = Table(title="Offers")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Code")
    table.add_column("Category")
    table.add_column("Discount", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Active")
    for o in offers:
        discount = f"{o.discount_value:g}%" if o.discount_type == "percentage" else f"{o.discount_value:g}"
        used = f"{o.usage_count}/{o.usage_limit}" if o.usage_limit else str(o.usage_count)
        table.add_row(
            o.id, o.title, o.code, o.category, discount, used,
            "[green]on[/green]" if o.is_active else "[dim]off[/dim]",
        )
    return table


@offers_app.command("list")
def offers_list() -> None:
    """List offers."""
    from salo.views import OffersView

    view = OffersView(_gateway())
    _refresh_or_exit(view)
    console.print(_offers_table(view.offers))


@offers_app.command("toggle")
def offers_toggle(offer_id: str = typer.Argument(..., help="Offer ID")) -> None:
    """Flip an offer between active and inactive."""
    from salo.views import OffersView

    view = OffersView(_gateway())
    _refresh_or_exit(view)
    offer = view.find(offer_id)
    if offer is None:
        _fail(f"No offer with id {offer_id}")
    if not view.toggle_active(offer):
        raise typer.Exit(1)
    console.print(_offers_table(view.offers))


@app.command()
def catalog(
    resource: str = typer.Argument(..., help="games, packages, memberships or bookings"),
) -> None:
    """Dump one of the catalog resources."""
    from salo.api.fetchers import COLLECTIONS, fetch_collection

    if resource not in COLLECTIONS:
        _fail(f"Unknown resource: {resource}. Available: {', '.join(COLLECTIONS)}")
    try:
        rows = fetch_collection(_gateway(), resource)
    except SaloError as e:
        _fail(e.message)
        return

    table = Table(title=f"{resource.title()} ({len(rows)})")
    columns = [k for k in (rows[0].keys() if rows else []) if not k.startswith("__")][:6]
    for c in columns:
        table.add_column(c)
    for row in rows:
        table.add_row(*(str(row.get(c, "")) for c in columns))
    console.print(table)


# ======================================================================
# Leaderboard
# ======================================================================


def _leaderboard_table(board, event_id: str) -> Table:
    table = Table(title="Leaderboard")
    table.add_column("Event")
    table.add_column("1st")
    table.add_column("2nd")
    table.add_column("3rd")
    for e in board.filter(event_id):
        podium = board.podium(e.id)
        table.add_row(e.event_name, *(podium[r].label if podium[r] else "-" for r in (1, 2, 3)))
    return table


@app.command()
def leaderboard(
    event_id: str = typer.Option("all", "--event", help="Show one event only"),
    follow: bool = typer.Option(False, "--follow", help="Stay connected for live updates"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    """Show event podiums, optionally following live updates."""
    _setup_logging(log_level)
    from salo.api.fetchers import fetch_leaderboard
    from salo.live.leaderboard import Leaderboard, LeaderboardFeed

    try:
        board = Leaderboard(fetch_leaderboard(_gateway()))
    except SaloError as e:
        _fail(e.message)
        return
    console.print(_leaderboard_table(board, event_id))
    if not follow:
        return

    feed = LeaderboardFeed(
        board,
        on_update=lambda _: console.print(_leaderboard_table(board, event_id)),
    )
    try:
        feed.connect()
        feed.wait()
    except KeyboardInterrupt:
        pass
    finally:
        feed.disconnect()


# ======================================================================
# Reports
# ======================================================================


@app.command()
def export(
    fmt: str = typer.Option("csv", "--format", help="csv or pdf"),
    report_type: str = typer.Option("event-summary", "--type", help="event-summary, participant or team"),
    out_dir: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    """Export a report as CSV (server-built) or PDF (built locally)."""
    _setup_logging(log_level)
    from salo.reports.export import REPORT_TYPES, export_csv, report_filename

    if report_type not in REPORT_TYPES:
        _fail(f"Unknown report type: {report_type}. Available: {', '.join(REPORT_TYPES)}")
    console.print(f"[cyan]▶ Generating {report_type} report...[/cyan]")

    if fmt == "csv":
        try:
            path = export_csv(_gateway(), report_type, out_dir)
        except SaloError as e:
            _fail(f"Failed to export data: {e.message}")
            return
    elif fmt == "pdf":
        if report_type != "event-summary":
            _fail("PDF is available for the event-summary report only")
        from salo.reports.document import build_event_summary
        from salo.reports.pdf import render_pdf
        from salo.views import AnalyticsView

        view = AnalyticsView(_gateway())
        _refresh_or_exit(view)
        doc = build_event_summary(view.events, view.teams, view.snapshot, view.trend)
        path = Path(out_dir or get_settings().report_dir) / report_filename(report_type, "pdf")
        pages = render_pdf(doc, path)
        console.print(f"[dim]{pages} page(s), {len(doc.events)} event(s)[/dim]")
    else:
        _fail(f"Unknown format: {fmt}. Use csv or pdf")
        return

    console.print(f"[green]✓ {report_type.replace('-', ' ')} report exported to {path}[/green]")


if __name__ == "__main__":
    app()
