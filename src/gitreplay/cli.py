"""CLI for gitreplay."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import click

logger = logging.getLogger(__name__)

DEFAULT_SINK = "console"


def find_git_root(start_path: Path | None = None) -> Path | None:
    """Find the root of the git repository containing start_path.

    Args:
        start_path: Path to start searching from. Defaults to current directory.

    Returns:
        Path to git root, or None if not in a git repository.
    """
    current = (start_path or Path.cwd()).resolve()

    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent

    # Check root directory
    if (current / ".git").exists():
        return current

    return None


def configure_logging(verbose: int) -> None:
    """Send log records to stderr through rich when -v is given."""
    if not verbose:
        return

    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose > 1 else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def resolve_ignore_text(
    repo: Path | None,
    ignore_file: Path | None,
    use_gitignore: bool,
    settings: dict[str, Any],
) -> str:
    """Collect ignore rules.

    The first of --ignore-file, the project's gitreplay.ignoreFile and the
    global settings' ignore list is used. --use-gitignore adds the
    repository's .gitignore at HEAD on top.
    """
    from gitreplay.config import load_config
    from gitreplay.settings import ignore_patterns

    text = ""
    if ignore_file is not None:
        text = ignore_file.read_text()
    else:
        project_file = load_config(repo).ignore_file if repo else None
        if project_file:
            path = Path(project_file)
            if not path.is_absolute() and repo is not None:
                path = repo / path
            if path.exists():
                text = path.read_text()
            else:
                logger.warning("Configured ignore file not found: %s", path)
        else:
            text = "\n".join(ignore_patterns(settings))

    if use_gitignore and repo is not None:
        from gitreplay.history import GitHistory

        gitignore = GitHistory(repo).read_file(".gitignore")
        if gitignore:
            text = f"{text}\n{gitignore}" if text else gitignore

    return text


def resolve_chunk_size(
    repo: Path | None,
    chunk_size: int | None,
    settings: dict[str, Any],
) -> int | None:
    """Pick the insert chunk size: CLI, then project config, then settings."""
    from gitreplay.config import load_config

    if chunk_size is not None:
        return chunk_size
    if repo is not None:
        project_chunk = load_config(repo).chunk_size
        if project_chunk is not None:
            return project_chunk
    value = settings.get("chunk_size")
    return int(value) if value else None


class DefaultGroup(click.Group):
    """A click Group that runs a default command when none is named."""

    def __init__(self, *args: Any, default_cmd: str | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.default_cmd = default_cmd

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        """Insert default command if no subcommand given."""
        if not args and self.default_cmd:
            args = [self.default_cmd]
            return super().parse_args(ctx, args)

        if not args:
            return super().parse_args(ctx, args)

        # Don't intercept top-level options like --help, --version
        if args[0].startswith("-") and args[0] in ("--help", "--version"):
            return super().parse_args(ctx, args)

        if args[0] in self.commands:
            return super().parse_args(ctx, args)

        # Repository paths and replay options go to the default command
        if self.default_cmd:
            args = [self.default_cmd] + args
        return super().parse_args(ctx, args)


@click.group(cls=DefaultGroup, default_cmd="replay")
@click.version_option(package_name="gitreplay")
def main() -> None:
    """Replay git history as a stream of fine-grained text edits.

    If no command is specified, 'replay' is used by default.

    Examples:

        gitreplay                               # Replay the current repository

        gitreplay replay ../proj -s jsonl -o ops.jsonl

        gitreplay replay --range v1.0..main --squash -d ./tree

        gitreplay parse 0001-fix.patch          # Inspect a single patch
    """
    pass


@main.command()
@click.argument(
    "repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=False,
)
@click.option("-r", "--range", "rev_range", help="Revision or range to replay, e.g. v1.0..main.")
@click.option("-n", "--max-count", type=click.IntRange(min=1), help="Only replay the last N commits.")
@click.option("--squash", is_flag=True, help="Replay --range as a single combined change.")
@click.option(
    "--patches",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Replay *.patch files from this directory instead of a repository.",
)
@click.option(
    "--ignore-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File with gitignore-style rules for paths to leave out.",
)
@click.option("--use-gitignore", is_flag=True, help="Also skip paths matched by the repository's .gitignore.")
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    help="Deliver inserted text in groups of N characters.",
)
@click.option(
    "-d",
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Mirror the replayed files into this directory.",
)
@click.option("-s", "--sink", "sink_name", help="Operation sink (see 'gitreplay sinks').")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write sink output to this file.",
)
@click.option("--no-verify", is_flag=True, help="Skip content checks before deletions.")
@click.option("-v", "--verbose", count=True, help="Log progress (-vv for per-file detail).")
def replay(
    repo: Path | None,
    rev_range: str | None,
    max_count: int | None,
    squash: bool,
    patches: Path | None,
    ignore_file: Path | None,
    use_gitignore: bool,
    chunk_size: int | None,
    output_dir: Path | None,
    sink_name: str | None,
    output: Path | None,
    no_verify: bool,
    verbose: int,
) -> None:
    """Replay a repository's history into an operation sink.

    REPO defaults to the git repository containing the current directory.
    Commits are replayed oldest first; merge commits are skipped.
    """
    from gitreplay import replay_patch_files, replay_repository
    from gitreplay.errors import ReplayError
    from gitreplay.history import PatchFiles
    from gitreplay.plugins import create_sink
    from gitreplay.replay import ReplayConfig
    from gitreplay.settings import get_settings

    configure_logging(verbose)

    if patches is None and repo is None:
        repo = find_git_root()
        if repo is None:
            raise click.ClickException(
                "Not in a git repository. Pass a repository path or --patches."
            )

    settings = get_settings()
    config = ReplayConfig(
        chunk_size=resolve_chunk_size(repo, chunk_size, settings),
        ignore_text=resolve_ignore_text(repo, ignore_file, use_gitignore, settings),
        verify_deletions=not no_verify,
        output_dir=output_dir,
    )

    try:
        sink = create_sink(sink_name or settings.get("sink") or DEFAULT_SINK, output=output)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    try:
        if patches is not None:
            session = replay_patch_files(PatchFiles.from_directory(patches).paths, config, sink)
        else:
            session = replay_repository(
                repo,
                rev_range=rev_range,
                max_count=max_count,
                config=config,
                sink=sink,
                squash=squash,
            )
    except ReplayError as e:
        logger.error("Replay stopped: %s", e)
        raise click.ClickException(str(e)) from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    click.echo(
        f"Replayed {session.commits_replayed} commit(s): "
        f"{session.files_replayed} file change(s), "
        f"{session.files_suppressed} ignored, "
        f"{session.operations_emitted} operation(s)",
        err=True,
    )
    if output_dir is not None:
        click.echo(f"Files written to: {output_dir}", err=True)


@main.command()
@click.argument("patch_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--edits", is_flag=True, help="Also list the compacted edits of each file.")
def parse(patch_file: Path, edits: bool) -> None:
    """Show the file changes in a single patch."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    from gitreplay.compactor import compact_edits
    from gitreplay.core import DeletedRange
    from gitreplay.diff_parser import parse_patch
    from gitreplay.errors import MalformedPatch

    try:
        patch = parse_patch(patch_file.read_text(encoding="utf-8", errors="replace"))
    except MalformedPatch as e:
        raise click.ClickException(str(e)) from e

    console = Console()
    if patch.subject:
        console.print(f"[bold]{escape(patch.subject)}[/bold]")
    if patch.author:
        console.print(f"Author: {escape(patch.author)} <{escape(patch.author_email or '')}>")

    count_label = "file" if len(patch.files) == 1 else "files"
    table = Table(title=f"{len(patch.files)} {count_label} changed")
    table.add_column("Status", style="magenta")
    table.add_column("Path", style="cyan")
    table.add_column("Added", style="green", justify="right")
    table.add_column("Removed", style="red", justify="right")

    for change in patch.files:
        if change.deleted:
            status = "deleted"
        elif change.created:
            status = "created"
        elif change.copied:
            status = "copied"
        elif change.is_rename:
            status = "renamed"
        else:
            status = "modified"
        if change.binary:
            status += " (binary)"
        path = change.path
        if change.is_rename or change.copied:
            path = f"{change.before_name} -> {change.after_name}"
        table.add_row(status, escape(path), str(change.lines_added), str(change.lines_removed))

    console.print(table)

    if not edits:
        return

    for change in patch.files:
        console.print(f"\n[bold]{escape(change.path)}[/bold]")
        for item in compact_edits(change.edits):
            if isinstance(item, DeletedRange):
                console.print(f"  [red]-{item.start}..{item.end}[/red] ({item.count} lines)")
            else:
                console.print(f"  [green]+{item.line_number}[/green] {escape(item.line)}")


@main.command()
def sinks() -> None:
    """List available operation sinks."""
    from gitreplay.plugins import available_sinks

    click.echo("Available sinks:\n")

    for info in available_sinks():
        name = info.get("name", "unknown")
        description = info.get("description", "No description")
        click.echo(f"  {name}: {description}")


@main.command()
@click.argument(
    "repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=False,
)
@click.option("--ignore-file", help="Ignore file path, relative to the repository root.")
@click.option("--chunk-size", type=click.IntRange(min=1), help="Default insert chunk size.")
def config(repo: Path | None, ignore_file: str | None, chunk_size: int | None) -> None:
    """Show or set replay options stored in a repository's git config."""
    from gitreplay.config import ProjectConfig, load_config, save_config

    if repo is None:
        repo = find_git_root()
        if repo is None:
            raise click.ClickException("Not in a git repository. Pass a repository path.")

    if ignore_file is not None or chunk_size is not None:
        if not save_config(repo, ProjectConfig(ignore_file=ignore_file, chunk_size=chunk_size)):
            raise click.ClickException(f"Not a git repository: {repo}")

    current = load_config(repo)
    click.echo(f"ignoreFile: {current.ignore_file or '(not set)'}")
    click.echo(f"chunkSize: {current.chunk_size or '(not set)'}")


if __name__ == "__main__":
    main()
