"""CLI entry point for codex-history.

Lists, previews, pins, remarks, deletes, archives and restores Codex
sessions:
    python -m codex_history list --search "login bug"
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from codex_history.config import Config, load_config
from codex_history.errors import HistoryError
from codex_history.logging import setup_logging
from codex_history.manager import HistoryManager
from codex_history.models import SessionMessage, SessionSummary, epoch_seconds
from codex_history.paths import build_paths, ensure_manager_dirs
from codex_history.state import StateStore
from codex_history.text import truncate


def format_timestamp(ts: int | float) -> str:
    """Format epoch seconds for display (the raw value if out of range)."""
    try:
        return datetime.fromtimestamp(epoch_seconds(ts)).strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, OverflowError, OSError):
        return str(ts)


def format_message_time(raw: str) -> str:
    """Format a transcript timestamp for display ('-' if unparseable)."""
    if not raw:
        return "-"
    try:
        text = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
        return datetime.fromisoformat(text).astimezone().strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return raw


def print_summary(summary: SessionSummary) -> None:
    """Print one session listing entry."""
    star = "\033[33m★\033[0m " if summary.pinned else ""
    archived = " \033[90m[archived]\033[0m" if summary.is_archived else ""
    click.echo(
        f"{star}\033[36m[{format_timestamp(summary.last_ts)}]\033[0m "
        f"\033[1m{summary.first_text}\033[0m{archived}"
    )
    click.echo(f"ID: {summary.session_id} | Turns: {summary.count}")
    if summary.remark:
        click.echo(f"Remark: \033[33m{truncate(summary.remark, 40)}\033[0m")
    if summary.last_text and summary.last_text != summary.first_text:
        click.echo(f"Last: {truncate(summary.last_text, 80)}")
    click.echo("-" * 40)


def print_message(index: int, msg: SessionMessage) -> None:
    """Print one preview message."""
    color = "36" if msg.role == "assistant" else "32"
    click.echo(f"[{index}] {format_message_time(msg.timestamp)} \033[{color}m{msg.role}\033[0m")
    click.echo(msg.text or "(no text content)")


def build_manager(
    config: Config,
    codex_home: Path | None,
    manager_home: Path | None,
) -> HistoryManager:
    """Create a HistoryManager from config and CLI overrides."""
    paths = build_paths(codex_home or config.codex_home, manager_home or config.manager_home)
    ensure_manager_dirs(paths)
    state = StateStore(paths.state_file)
    state.load()
    return HistoryManager(paths, state, resume_tool=config.resume_tool)


class Context:
    """Objects shared between the CLI group and its commands."""

    def __init__(self, config: Config, manager: HistoryManager) -> None:
        self.config = config
        self.manager = manager


pass_context = click.make_pass_decorator(Context)


@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to config YAML")
@click.option("--codex-home", "-c", type=click.Path(path_type=Path), help="Codex home (default ~/.codex)")
@click.option(
    "--manager-home",
    "-m",
    type=click.Path(path_type=Path),
    help="Manager state directory (default ~/.codex-history)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log to stderr")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    codex_home: Path | None,
    manager_home: Path | None,
    verbose: bool,
) -> None:
    """Manage Codex session history."""
    config = load_config(config_path)
    manager = build_manager(config, codex_home, manager_home)
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)
    setup_logging("cli", log_dir=manager.paths.log_dir, level=level, console=verbose)
    ctx.obj = Context(config, manager)


@cli.command("list")
@click.option("--limit", "-l", type=int, default=None, help="Number of sessions (default from config)")
@click.option("--search", "-s", help="Only sessions containing all of these words")
@click.option("--pinned", "-p", is_flag=True, help="Only pinned sessions")
@click.option("--show-system", is_flag=True, help="Include injected system/instruction text")
@click.option("--no-archived", is_flag=True, help="Hide archived sessions")
@pass_context
def list_sessions(
    ctx: Context,
    limit: int | None,
    search: str | None,
    pinned: bool,
    show_system: bool,
    no_archived: bool,
) -> None:
    """List sessions."""
    summaries = ctx.manager.list_summaries(
        search=search,
        limit=limit if limit is not None else ctx.config.list_limit,
        only_pinned=pinned,
        hide_system_text=ctx.config.hide_system_text and not show_system,
        include_archived=not no_archived,
    )
    if not summaries:
        click.echo("No matching sessions.")
        return
    for summary in summaries:
        print_summary(summary)


@cli.command()
@click.argument("session_id")
@click.option("--limit", "-n", type=int, default=None, help="Maximum messages to show")
@click.option("--show-system", is_flag=True, help="Include injected system/instruction text")
@pass_context
def preview(ctx: Context, session_id: str, limit: int | None, show_system: bool) -> None:
    """Preview the messages of a session."""
    try:
        result = ctx.manager.read_session_messages(
            session_id,
            limit=limit if limit is not None else ctx.config.preview_limit,
            hide_system_text=ctx.config.hide_system_text and not show_system,
        )
    except HistoryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"File: {result.file_path}")
    click.echo(f"Remark: {result.remark or '(none)'}")
    click.echo("---")
    for index, msg in enumerate(result.messages, start=1):
        if index > 1:
            click.echo("---")
        print_message(index, msg)


@cli.command()
@click.argument("session_id")
@pass_context
def pin(ctx: Context, session_id: str) -> None:
    """Pin a session to the top of the list."""
    ctx.manager.pin(session_id)
    click.echo(f"Pinned {session_id}")


@cli.command()
@click.argument("session_id")
@pass_context
def unpin(ctx: Context, session_id: str) -> None:
    """Unpin a session."""
    ctx.manager.unpin(session_id)
    click.echo(f"Unpinned {session_id}")


@cli.command()
@click.argument("session_id")
@click.argument("text", nargs=-1)
@pass_context
def remark(ctx: Context, session_id: str, text: tuple[str, ...]) -> None:
    """Set a session remark (no text clears it)."""
    value = " ".join(text).strip()
    ctx.manager.set_remark(session_id, value)
    click.echo(f"Remark set: {value}" if value else "Remark cleared")


@cli.command()
@click.argument("session_ids", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--no-backup", is_flag=True, help="Do not keep history.jsonl.bak")
@pass_context
def delete(ctx: Context, session_ids: tuple[str, ...], yes: bool, no_backup: bool) -> None:
    """Move sessions to the trash and remove them from history.jsonl."""
    if not yes and not click.confirm(
        f"Delete {len(session_ids)} session(s)? This rewrites history.jsonl and moves session files."
    ):
        click.echo("Cancelled.")
        return

    result = ctx.manager.delete_sessions(
        list(session_ids),
        backup_history=ctx.config.backup_history and not no_backup,
    )
    click.echo(f"Removed {result.removed_history} line(s) from history.jsonl.")
    if result.removed_files:
        click.echo(f"Moved {len(result.removed_files)} session file(s) to the trash.")
    if result.not_found_files:
        click.echo(f"Session files not found: {', '.join(result.not_found_files)}", err=True)


def _run_move(action, session_id: str, verb: str) -> None:
    try:
        dest = action(session_id)
    except HistoryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"{verb} {session_id} -> {dest}")


@cli.command()
@click.argument("session_id")
@pass_context
def archive(ctx: Context, session_id: str) -> None:
    """Move a session into archived_sessions."""
    _run_move(ctx.manager.archive_session, session_id, "Archived")


@cli.command()
@click.argument("session_id")
@pass_context
def unarchive(ctx: Context, session_id: str) -> None:
    """Move an archived session back into sessions."""
    _run_move(ctx.manager.unarchive_session, session_id, "Unarchived")


@cli.command()
@click.argument("session_id")
@pass_context
def restore(ctx: Context, session_id: str) -> None:
    """Restore a session from the trash."""
    _run_move(ctx.manager.restore_from_recycle_bin, session_id, "Restored")


@cli.command()
@pass_context
def trash(ctx: Context) -> None:
    """List sessions in the trash."""
    summaries = ctx.manager.list_recycle_bin()
    if not summaries:
        click.echo("Trash is empty.")
        return
    for summary in summaries:
        print_summary(summary)


def _echo_progress(message: str, fraction: float) -> None:
    click.echo(f"{message} ({fraction:.0%})", err=True)


@cli.command()
@pass_context
def rebuild(ctx: Context) -> None:
    """Rebuild history.jsonl from the session files."""
    count = ctx.manager.rebuild_index(progress=_echo_progress)
    click.echo(f"Rebuilt index with {count} session(s).")


@cli.command()
@pass_context
def sync(ctx: Context) -> None:
    """Append sessions missing from history.jsonl."""
    try:
        entries = ctx.manager.check_for_new_sessions(progress=_echo_progress)
    except HistoryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Indexed {len(entries)} new session(s).")


@cli.command()
@click.argument("session_id")
@pass_context
def resume(ctx: Context, session_id: str) -> None:
    """Print the command that resumes a session."""
    click.echo(ctx.manager.get_resume_command(session_id))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
