"""CLI interface for quest-log."""

from __future__ import annotations

import json
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from quest_log import __version__
from quest_log.config import QuestConfig
from quest_log.logging_setup import setup_logging
from quest_log.models import Task
from quest_log.storage import FileKeyValueStore, PersistenceAdapter
from quest_log.store import ClickAction, QuestStore

console = Console()

SHELL_HELP = """\
[bold]Commands[/bold] (N is a row number or quest id)
  [cyan]add TITLE[/cyan]      add a quest
  [cyan]click N[/cyan]        click a quest title (click twice quickly to complete it)
  [cyan]star N[/cyan]         toggle priority
  [cyan]sub N TEXT[/cyan]     add a subtask
  [cyan]tick N I[/cyan]       toggle subtask I of quest N
  [cyan]edit N[/cyan]         rename a quest
  [cyan]rm N[/cyan]           delete a quest
  [cyan]list[/cyan]           redraw the log
  [cyan]quit[/cyan]           leave the shell"""


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="quests")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: .quests/config.json)",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None) -> None:
    """quests - a quest log for the terminal.

    \b
    Examples:
      quests add Find the water chip
      quests list
      quests done 1          # toggle completion of row 1
      quests shell           # interactive mode
    """
    ctx.ensure_object(dict)

    try:
        config = QuestConfig.load(config_path)
    except (ValidationError, json.JSONDecodeError) as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        ctx.exit(1)

    setup_logging(config.logging.level, config.logging.file)
    ctx.obj["config"] = config

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _open_store(ctx: click.Context) -> QuestStore:
    """Open the quest store described by the loaded config."""
    config: QuestConfig = ctx.obj["config"]
    adapter = PersistenceAdapter(
        FileKeyValueStore(config.storage.directory),
        key=config.storage.key,
    )
    return QuestStore.open(adapter, double_click_ms=config.interaction.double_click_ms)


def _resolve(store: QuestStore, ref: int) -> Task | None:
    """Find a quest by id, falling back to its row number in display order."""
    task = store.get_task(ref)
    if task is not None:
        return task

    ordered = store.sorted_tasks()
    if 1 <= ref <= len(ordered):
        return ordered[ref - 1]
    return None


def _require(ctx: click.Context, store: QuestStore, ref: int) -> Task:
    task = _resolve(store, ref)
    if task is None:
        console.print(f"[red]No quest[/red] {ref}")
        ctx.exit(1)
    return task


def _render_board(store: QuestStore, show_all: bool = False) -> None:
    """Print the quest log in display order."""
    ordered = store.sorted_tasks()
    if not ordered:
        console.print("[dim]No quests yet.[/dim]")
        return

    table = Table(title="Quest Log", title_style="bold green", show_lines=False)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Quest")
    table.add_column("Subtasks", justify="right")
    table.add_column("ID", style="dim")

    for row, task in enumerate(ordered, start=1):
        star = "[green]★[/green] " if task.priority else ""
        title = escape(task.title)
        if task.completed:
            title = f"[dim strike]{title}[/dim strike]"
        lines = [f"{star}{title}"]

        if task.expanded or show_all:
            for index, subtask in enumerate(task.subtasks, start=1):
                mark = "[dim]✓[/dim]" if subtask.done else "-"
                text = escape(subtask.text)
                if subtask.done:
                    text = f"[dim]{text}[/dim]"
                lines.append(f"  {mark} {index}. {text}")

        finished = sum(1 for s in task.subtasks if s.done)
        progress = f"{finished}/{len(task.subtasks)}" if task.subtasks else ""
        table.add_row(str(row), "\n".join(lines), progress, str(task.id))

    console.print(table)


@main.command()
@click.argument("title", nargs=-1, required=True)
@click.pass_context
def add(ctx: click.Context, title: tuple[str, ...]) -> None:
    """Add a new quest."""
    store = _open_store(ctx)
    task = store.add_task(" ".join(title))

    if task is None:
        console.print("[yellow]Quest title is empty, nothing added.[/yellow]")
        return

    console.print(f"[green]Added:[/green] {escape(task.title)}")


@main.command("list")
@click.option("--all", "-a", "show_all", is_flag=True, help="Show subtasks of every quest")
@click.pass_context
def list_command(ctx: click.Context, show_all: bool) -> None:
    """Show quests: open first, starred first, completed last."""
    _render_board(_open_store(ctx), show_all=show_all)


@main.command()
@click.argument("ref", type=int)
@click.pass_context
def show(ctx: click.Context, ref: int) -> None:
    """Show a quest and its subtasks."""
    store = _open_store(ctx)
    task = _require(ctx, store, ref)

    lines = [
        f"[bold]{escape(task.title)}[/bold]",
        f"[cyan]ID:[/cyan] {task.id}",
        f"[cyan]Status:[/cyan] {'completed' if task.completed else 'open'}",
        f"[cyan]Priority:[/cyan] {'yes' if task.priority else 'no'}",
    ]
    if task.subtasks:
        lines.append("")
        for index, subtask in enumerate(task.subtasks, start=1):
            mark = "[green]✓[/green]" if subtask.done else "○"
            lines.append(f"  {mark} {index}. {escape(subtask.text)}")
    else:
        lines.append("[dim]No subtasks[/dim]")

    console.print(Panel("\n".join(lines), title="Quest", expand=False))


@main.command()
@click.argument("ref", type=int)
@click.pass_context
def done(ctx: click.Context, ref: int) -> None:
    """Toggle completion of a quest."""
    store = _open_store(ctx)
    task = _require(ctx, store, ref)
    store.toggle_completed(task.id)
    state = "[green]completed[/green]" if task.completed else "[yellow]reopened[/yellow]"
    console.print(f"{escape(task.title)}: {state}")


@main.command()
@click.argument("ref", type=int)
@click.pass_context
def star(ctx: click.Context, ref: int) -> None:
    """Toggle the priority star of a quest."""
    store = _open_store(ctx)
    task = _require(ctx, store, ref)
    store.toggle_priority(task.id)
    console.print(f"{escape(task.title)}: {'starred' if task.priority else 'unstarred'}")


@main.command("rm")
@click.argument("ref", type=int)
@click.pass_context
def remove(ctx: click.Context, ref: int) -> None:
    """Delete a quest and its subtasks."""
    store = _open_store(ctx)
    task = _require(ctx, store, ref)
    store.delete_task(task.id)
    console.print(f"[red]Deleted:[/red] {escape(task.title)}")


@main.command()
@click.argument("ref", type=int)
@click.argument("new_title", nargs=-1, required=True)
@click.pass_context
def rename(ctx: click.Context, ref: int, new_title: tuple[str, ...]) -> None:
    """Rename a quest."""
    store = _open_store(ctx)
    task = _require(ctx, store, ref)

    old_title = task.title
    store.begin_edit(task.id)
    store.set_edit_text(task.id, " ".join(new_title))
    store.commit_edit(task.id)

    if task.title == old_title:
        console.print("[yellow]Title unchanged.[/yellow]")
    else:
        console.print(f"[green]Renamed:[/green] {escape(old_title)} → {escape(task.title)}")


@main.group()
def sub() -> None:
    """Manage subtasks."""


@sub.command("add")
@click.argument("ref", type=int)
@click.argument("text", nargs=-1, required=True)
@click.pass_context
def sub_add(ctx: click.Context, ref: int, text: tuple[str, ...]) -> None:
    """Add a subtask to a quest."""
    store = _open_store(ctx)
    task = _require(ctx, store, ref)

    subtask = store.add_subtask(task.id, " ".join(text))
    if subtask is None:
        console.print("[yellow]Subtask text is empty, nothing added.[/yellow]")
        return

    console.print(f"[green]Added to {escape(task.title)}:[/green] {escape(subtask.text)}")


@sub.command("toggle")
@click.argument("ref", type=int)
@click.argument("index", type=int)
@click.pass_context
def sub_toggle(ctx: click.Context, ref: int, index: int) -> None:
    """Toggle subtask INDEX (1-based) of a quest."""
    store = _open_store(ctx)
    task = _require(ctx, store, ref)

    if not store.toggle_subtask(task.id, index - 1):
        console.print(f"[red]No subtask[/red] {index} [red]on[/red] {escape(task.title)}")
        ctx.exit(1)

    subtask = task.subtasks[index - 1]
    console.print(f"{escape(subtask.text)}: {'done' if subtask.done else 'not done'}")


@main.command()
@click.pass_context
def shell(ctx: click.Context) -> None:
    """Interactive quest log.

    Clicking a quest title once expands or collapses it; clicking it twice
    in quick succession toggles completion.
    """
    store = _open_store(ctx)
    _render_board(store)
    console.print("[dim]Type 'help' for commands.[/dim]")

    while True:
        try:
            line = click.prompt("", prompt_suffix="> ", default="", show_default=False)
        except click.Abort:
            break

        parts = line.strip().split(maxsplit=2)
        if not parts:
            continue

        command, args = parts[0].lower(), parts[1:]
        if command in ("quit", "exit", "q"):
            break
        if command == "help":
            console.print(SHELL_HELP)
            continue
        if command == "list":
            _render_board(store)
            continue
        if command == "add":
            store.add_task(line.strip()[len(parts[0]) :].strip())
            _render_board(store)
            continue

        if not args or not args[0].isdigit():
            console.print(f"[red]Unknown command:[/red] {escape(line.strip())}")
            continue

        task = _resolve(store, int(args[0]))
        if task is None:
            console.print(f"[red]No quest[/red] {escape(args[0])}")
            continue

        if command == "click":
            action = store.handle_click(task.id)
            if action is ClickAction.TOGGLE_COMPLETED:
                console.print(f"[dim]double click: {escape(task.title)}[/dim]")
        elif command == "star":
            store.toggle_priority(task.id)
        elif command == "sub" and len(args) > 1:
            store.add_subtask(task.id, args[1])
        elif command == "tick" and len(args) > 1 and args[1].isdigit():
            store.toggle_subtask(task.id, int(args[1]) - 1)
        elif command == "edit":
            store.begin_edit(task.id)
            new_title = click.prompt("New title", default=store.edit_text(task.id) or "")
            store.set_edit_text(task.id, new_title)
            store.commit_edit(task.id)
        elif command == "rm":
            store.delete_task(task.id)
        else:
            console.print(f"[red]Unknown command:[/red] {escape(line.strip())}")
            continue

        _render_board(store)
