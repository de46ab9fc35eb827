# blueprint_coach/cli.py
"""
CLI interface for blueprint-coach.

Thin presentation layer over the session and tools/ layers.
"""

import asyncio

import typer

app = typer.Typer(
    name="blueprint-coach",
    help="Conversational coach for designing project-based learning blueprints.",
    no_args_is_help=True,
)

_SLASH_HELP = (
    "/ideas  /examples  /whatif  /yes  /refine  /proceed  /edit <step>  "
    "/context  /progress  /quit"
)


def _run(coro):
    """Run async function from sync CLI context."""
    return asyncio.run(coro)


async def _get_store(config=None):
    """Open the SQLite blueprint store at the configured path."""
    from blueprint_coach.config.loader import get_db_path, load_config
    from blueprint_coach.models.sqlite_store import SQLiteBlueprintStore

    config = config or load_config()
    store = SQLiteBlueprintStore(get_db_path(config))
    await store.initialize()
    return store


def _get_client(config, offline: bool):
    if offline:
        return None
    from blueprint_coach.llm.factory import create_relay_client

    return create_relay_client(config)


def _stage_color(stage: str) -> str:
    colors = {
        "complete": typer.colors.GREEN,
        "deliverables": typer.colors.MAGENTA,
        "journey": typer.colors.YELLOW,
        "ideation": typer.colors.CYAN,
    }
    return colors.get(stage, typer.colors.WHITE)


def _resolve_step_key(name: str) -> str:
    """Accept "ideation.bigIdea", "bigIdea" or "bigidea"."""
    from blueprint_coach.models.steps import STEP_KEYS

    wanted = name.strip().lower()
    for key in STEP_KEYS:
        if wanted in (key.lower(), key.split(".", 1)[1].lower()):
            return key
    return name.strip()


def _print_messages(console, messages) -> None:
    from rich.markup import escape

    from blueprint_coach.models.conversation import Role

    for message in messages:
        if message.role is Role.USER:
            continue
        if message.role is Role.SYSTEM:
            if message.kind == "decision":
                console.print(f"[green]✓ {escape(message.content)}[/green]")
            continue
        style = "dim" if message.kind in ("coaching", "stage_intro") else ""
        text = escape(message.content)
        console.print("[bold cyan]coach[/bold cyan] " + (f"[{style}]{text}[/{style}]" if style else text))
        console.print()


async def _interactive(session, console) -> None:
    from blueprint_coach.errors import InvalidTransition
    from blueprint_coach.models.conversation import SubPhase

    _print_messages(console, await session.start())
    console.print(f"[dim]Commands: {_SLASH_HELP}[/dim]\n")

    while session.machine.sub_phase is not SubPhase.COMPLETE:
        try:
            line = typer.prompt("you", prompt_suffix="> ", default="", show_default=False)
        except typer.Abort:
            break

        command, _, argument = line.strip().partition(" ")
        try:
            if command == "/quit":
                break
            elif command in ("/ideas", "/examples", "/whatif"):
                messages = await session.request_suggestions(command[1:])
            elif command == "/yes":
                messages = await session.confirm()
            elif command == "/refine":
                messages = await session.refine()
            elif command == "/proceed":
                messages = await session.proceed()
            elif command == "/edit":
                messages = await session.go_back_to(_resolve_step_key(argument))
            elif command == "/context":
                console.print(session.machine.context.get_formatted_context(), markup=False)
                continue
            elif command == "/progress":
                progress = session.machine.progress()
                console.print(
                    f"{progress['completed']}/{progress['total']} steps ({progress['percentage']}%)"
                    f", current: {progress['current_step'] or '-'}"
                )
                continue
            elif command.startswith("/"):
                console.print(f"[yellow]Unknown command. {_SLASH_HELP}[/yellow]")
                continue
            else:
                messages = await session.send(line)
        except InvalidTransition as e:
            console.print(f"[yellow]{e}[/yellow]")
            continue
        _print_messages(console, messages)

    if not session.synced:
        console.print("[red]Could not save to the blueprint database; progress is held locally only.[/red]")
    console.print(f"Blueprint [bold]{session.blueprint_id}[/bold]. Resume with: blueprint-coach resume {session.blueprint_id}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines to stderr"),
):
    """Conversational coach for designing project-based learning blueprints."""
    from blueprint_coach.logging_config import configure_cli_logging, configure_logging

    verbosity = "verbose" if verbose else "quiet"
    if json_logs:
        configure_logging("verbose" if verbose else "normal")
    else:
        configure_cli_logging(verbosity)


@app.command()
def start(
    subject: str = typer.Option(..., "--subject", "-s", help="Subject or discipline"),
    grade: str = typer.Option(..., "--grade", "-g", help="Grade level, e.g. '9-12' or '3rd grade'"),
    duration: str = typer.Option(..., "--duration", "-d", help="Project duration, e.g. '4 weeks'"),
    location: str = typer.Option(None, "--location", "-l", help="School or community location"),
    materials: str = typer.Option(None, "--materials", "-m", help="Comma-separated materials"),
    offline: bool = typer.Option(False, "--offline", help="Use template responses only"),
):
    """Start a new blueprint with an interactive coaching session."""
    from rich.console import Console

    from blueprint_coach.config.loader import load_config
    from blueprint_coach.errors import CoachError
    from blueprint_coach.session.coach import CoachSession

    handoff = {
        "subject": subject,
        "gradeLevel": grade,
        "duration": duration,
        "location": location,
        "materials": materials,
    }

    async def _start():
        config = load_config()
        store = await _get_store(config)
        session = None
        try:
            session = await CoachSession.create(
                handoff, store, client=_get_client(config, offline), config=config
            )
            await _interactive(session, Console())
        finally:
            if session is not None:
                await session.close()
            await store.close()

    try:
        _run(_start())
    except CoachError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("\nCancelled.", err=True)
        raise typer.Exit(130)


@app.command()
def resume(
    blueprint_id: str = typer.Argument(..., help="Blueprint ID to resume"),
    offline: bool = typer.Option(False, "--offline", help="Use template responses only"),
):
    """Resume an unfinished blueprint."""
    from rich.console import Console

    from blueprint_coach.config.loader import load_config
    from blueprint_coach.errors import CoachError
    from blueprint_coach.session.coach import CoachSession
    from blueprint_coach.validation.sanitize import sanitize_blueprint_id

    async def _resume():
        config = load_config()
        store = await _get_store(config)
        session = None
        try:
            session = await CoachSession.resume(
                sanitize_blueprint_id(blueprint_id),
                store,
                client=_get_client(config, offline),
                config=config,
            )
            await _interactive(session, Console())
        finally:
            if session is not None:
                await session.close()
            await store.close()

    try:
        _run(_resume())
    except CoachError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("\nCancelled.", err=True)
        raise typer.Exit(130)


@app.command("list")
def list_cmd():
    """List stored blueprints."""
    from blueprint_coach.tools.list_blueprints import list_blueprints

    async def _list():
        store = await _get_store()
        try:
            return await list_blueprints(store=store)
        finally:
            await store.close()

    result = _run(_list())
    blueprints = result["blueprints"]

    if not blueprints:
        typer.echo("No blueprints found.")
        return

    typer.echo(f"{'BLUEPRINT ID':<14} {'STAGE':<14} {'PROGRESS':<9} TITLE")
    typer.echo("-" * 80)
    for b in blueprints:
        stage = b["stage"]
        typer.echo(
            f"{b['blueprint_id']:<14} "
            + typer.style(f"{stage:<14} ", fg=_stage_color(stage))
            + f"{b['progress'] * 100:>5.0f}%   {b['title']}"
        )


@app.command()
def show(
    blueprint_id: str = typer.Argument(..., help="Blueprint ID to show"),
    format: str = typer.Option("markdown", "--format", "-f", help="Output format: markdown, json"),
):
    """Print a blueprint as markdown or JSON."""
    from blueprint_coach.errors import CoachError
    from blueprint_coach.tools.get_blueprint import get_blueprint

    async def _show():
        store = await _get_store()
        try:
            return await get_blueprint(blueprint_id, store=store, format=format)
        finally:
            await store.close()

    try:
        result = _run(_show())
    except CoachError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(result["content"])


@app.command()
def delete(
    blueprint_id: str = typer.Argument(..., help="Blueprint ID to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a stored blueprint."""
    from blueprint_coach.errors import CoachError
    from blueprint_coach.validation.sanitize import sanitize_blueprint_id

    try:
        sanitized = sanitize_blueprint_id(blueprint_id)
    except CoachError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not yes:
        typer.confirm(f"Delete blueprint {sanitized}?", abort=True)

    async def _delete():
        store = await _get_store()
        try:
            return await store.delete(sanitized)
        finally:
            await store.close()

    if not _run(_delete()):
        typer.echo(f"Blueprint '{sanitized}' not found.", err=True)
        raise typer.Exit(1)
    typer.echo(f"Deleted blueprint {sanitized}.")


if __name__ == "__main__":
    app()
