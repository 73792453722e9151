"""CLI for batch renaming and resizing files.

Commands:
  - preview: Show the names a rule chain would produce
  - rename: Rename files through a rule chain
  - resize: Resize images with fit/fill/exact modes
  - ls: List a directory (directories first, hidden entries skipped)
  - info: Show size information for files
  - presets: Save, list, show and delete named rule chains
  - history: Show recent rename/resize operations
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import click
from config import CONFIG, LOG_FORMAT
from src.renovo.batch import batch_rename, preview_rename, resize_batch
from src.renovo.errors import ValidationError
from src.renovo.io_utils import (
    format_bytes,
    get_file_infos,
    iter_image_paths,
    list_directory,
)
from src.renovo.resize import OutputFormat, ResizeConfig, ResizeMode
from src.renovo.results import BatchResult, Status, summarize
from src.renovo.rules import (
    AffixRule,
    CaseRule,
    RenameRule,
    ReplaceRule,
    SequenceRule,
    load_rule_chain,
    parse_case_mode,
    rule_to_dict,
)
from src.renovo.storage import Storage


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(
        logging, CONFIG.behavior.log_level.upper(), logging.INFO
    )
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def rule_options(func: Callable) -> Callable:
    """Attach the options that describe a rule chain."""

    options = [
        click.option(
            "--rules",
            "rules_file",
            type=click.Path(path_type=Path, exists=True, dir_okay=False),
            default=None,
            help="JSON file with an ordered list of rules",
        ),
        click.option("--preset", type=str, default=None, help="Stored preset name"),
        click.option("--replace", "search", type=str, default=None, help="Text to find"),
        click.option("--with", "replacement", type=str, default="", help="Replacement"),
        click.option("--regex/--no-regex", default=False, help="Treat --replace as regex"),
        click.option("--prefix", type=str, default="", help="Prepend to the name"),
        click.option("--suffix", type=str, default="", help="Append to the name"),
        click.option(
            "--case",
            "case_mode",
            type=click.Choice(["upper", "lower", "title", "sentence"], case_sensitive=False),
            default=None,
        ),
        click.option("--seq-start", type=int, default=None, help="Append a sequence"),
        click.option("--seq-pad", type=int, default=0, show_default=True),
        click.option("--seq-sep", type=str, default="_", show_default=True),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_rules(
    ctx: click.Context,
    rules_file: Optional[Path],
    preset: Optional[str],
    search: Optional[str],
    replacement: str,
    regex: bool,
    prefix: str,
    suffix: str,
    case_mode: Optional[str],
    seq_start: Optional[int],
    seq_pad: int,
    seq_sep: str,
) -> List[RenameRule]:
    """Assemble a chain: file rules, then preset rules, then inline options.

    Inline options are appended in a fixed order: replace, affixes, case,
    sequence.
    """

    rules: List[RenameRule] = []
    if rules_file is not None:
        try:
            rules.extend(load_rule_chain(rules_file))
        except ValidationError as exc:
            raise click.BadParameter(str(exc), param_hint="--rules") from exc
    if preset:
        with _open_storage(ctx) as storage:
            try:
                rules.extend(storage.get_preset(preset))
            except KeyError:
                raise click.BadParameter(
                    f"No preset named '{preset}'", param_hint="--preset"
                ) from None
    if search is not None:
        rules.append(ReplaceRule(search=search, replacement=replacement, use_regex=regex))
    if prefix or suffix:
        rules.append(AffixRule(prefix=prefix, suffix=suffix))
    if case_mode:
        rules.append(CaseRule(mode=parse_case_mode(case_mode)))
    if seq_start is not None:
        rules.append(SequenceRule(start=seq_start, pad_width=seq_pad, separator=seq_sep))
    if not rules:
        raise click.UsageError("No rules given. Use --rules, --preset or inline options.")
    return rules


def _open_storage(ctx: click.Context) -> Storage:
    return Storage(ctx.obj["db_path"])


def _record_history(ctx: click.Context, operation: str, details: dict) -> None:
    if ctx.obj.get("no_history"):
        return
    with _open_storage(ctx) as storage:
        storage.add_history(operation, details)


def _echo_results(results: Sequence[BatchResult], as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return
    for r in results:
        line = f"[{r.status.value}] {r.old_name} -> {r.new_name}"
        if r.status is Status.ERROR:
            line += f"  ({r.error})"
        click.echo(line)
        for warning in getattr(r, "warnings", []):
            click.echo(f"    warning: {warning}")


def _exit_on_errors(results: Sequence[BatchResult]) -> None:
    if any(r.status is Status.ERROR for r in results):
        sys.exit(1)


def _expand_inputs(paths: Sequence[Path]) -> List[Path]:
    expanded: List[Path] = []
    for p in paths:
        p = p.absolute()
        if p.is_dir():
            expanded.extend(iter_image_paths(p))
        else:
            expanded.append(p)
    return expanded


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Preset/history database (defaults to ~/.renovo/renovo.db)",
)
@click.option("--no-history", is_flag=True, help="Do not record operations")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, db_path: Optional[Path], no_history: bool) -> None:
    """Batch rename and resize toolkit."""

    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path or CONFIG.paths.db_path
    ctx.obj["no_history"] = no_history


@cli.command(name="preview")
@click.argument(
    "files", nargs=-1, required=True, type=click.Path(path_type=Path)
)
@rule_options
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def cmd_preview(ctx: click.Context, files: tuple, as_json: bool, **rule_kwargs) -> None:
    """Show what FILES would be renamed to, without touching them."""

    rules = _build_rules(ctx, **rule_kwargs)
    results = preview_rename([p.absolute() for p in files], rules)
    _echo_results(results, as_json)


@cli.command(name="rename")
@click.argument(
    "files", nargs=-1, required=True, type=click.Path(path_type=Path)
)
@rule_options
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def cmd_rename(ctx: click.Context, files: tuple, as_json: bool, **rule_kwargs) -> None:
    """Rename FILES through the rule chain."""

    rules = _build_rules(ctx, **rule_kwargs)
    results = batch_rename([p.absolute() for p in files], rules)
    _echo_results(results, as_json)
    _record_history(
        ctx,
        "rename",
        {
            "rules": [rule_to_dict(r) for r in rules],
            "summary": summarize(results),
            "items": [
                {"old": str(r.old_path), "new": str(r.new_path), "status": r.status.value}
                for r in results
            ],
        },
    )
    _exit_on_errors(results)


@cli.command(name="resize")
@click.argument(
    "files", nargs=-1, required=True, type=click.Path(path_type=Path)
)
@click.option("--width", "-w", type=int, default=0, help="Target width (0 = unset)")
@click.option("--height", "-h", type=int, default=0, help="Target height (0 = unset)")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ResizeMode], case_sensitive=False),
    default=CONFIG.behavior.resize_mode,
    show_default=True,
)
@click.option(
    "--format",
    "output_format",
    type=str,
    default=CONFIG.behavior.output_format,
    show_default=True,
    help="Output format: same, jpg/jpeg, png, gif, bmp, tiff, webp",
)
@click.option("--quality", type=int, default=0, help="JPEG quality (default 85)")
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Write outputs here instead of beside the source",
)
@click.option("--overwrite/--no-overwrite", default=False)
@click.option("--keep-aspect/--no-keep-aspect", default=True)
@click.option("--keep-metadata/--no-keep-metadata", default=CONFIG.behavior.keep_metadata)
@click.option(
    "--resample",
    type=click.Choice(
        ["nearest", "bilinear", "bicubic", "lanczos"], case_sensitive=False
    ),
    default=CONFIG.behavior.resample,
)
@click.option("--images-only", is_flag=True, help="Skip files that are not images")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def cmd_resize(
    ctx: click.Context,
    files: tuple,
    width: int,
    height: int,
    mode: str,
    output_format: str,
    quality: int,
    output_dir: Optional[Path],
    overwrite: bool,
    keep_aspect: bool,
    keep_metadata: bool,
    resample: str,
    images_only: bool,
    as_json: bool,
) -> None:
    """Resize image FILES.

    A directory argument stands for the images directly inside it, in name
    order.
    """

    try:
        config = ResizeConfig(
            width=width,
            height=height,
            keep_aspect=keep_aspect,
            quality=quality,
            output_format=OutputFormat.parse(output_format),
            mode=ResizeMode.parse(mode),
            output_dir=output_dir,
            overwrite=overwrite,
            resample=resample,
            keep_metadata=keep_metadata,
        )
    except ValidationError as exc:
        raise click.BadParameter(str(exc), param_hint="--format") from exc

    results = resize_batch(_expand_inputs(files), config, images_only=images_only)
    _echo_results(results, as_json)
    if not as_json:
        for r in results:
            if r.status is Status.SUCCESS:
                click.echo(
                    f"    {r.original_width}x{r.original_height} "
                    f"({format_bytes(r.original_size)}) -> "
                    f"{r.output_width}x{r.output_height} ({format_bytes(r.output_size)})"
                )
    _record_history(
        ctx,
        "resize",
        {
            "width": width,
            "height": height,
            "mode": config.mode.value,
            "format": config.output_format.value,
            "summary": summarize(results),
        },
    )
    _exit_on_errors(results)


@cli.command(name="ls")
@click.argument(
    "directory",
    type=click.Path(path_type=Path, exists=True, file_okay=False),
    default=".",
)
def cmd_ls(directory: Path) -> None:
    """List DIRECTORY: folders first, then files with sizes."""

    for entry in list_directory(directory):
        if entry.is_dir:
            click.echo(f"{entry.name}/")
        else:
            click.echo(f"{entry.name}\t{format_bytes(entry.size)}")


@cli.command(name="info")
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
def cmd_info(files: tuple) -> None:
    """Show size information for FILES."""

    for info in get_file_infos(files):
        click.echo(f"{info.path}\t{info.ext or '-'}\t{info.size_label}")


@cli.group(name="presets")
def presets() -> None:
    """Manage named rule chains."""


@presets.command(name="save")
@click.argument("name")
@rule_options
@click.pass_context
def cmd_preset_save(ctx: click.Context, name: str, **rule_kwargs) -> None:
    """Store the given rule chain as NAME."""

    rules = _build_rules(ctx, **rule_kwargs)
    with _open_storage(ctx) as storage:
        storage.save_preset(name, rules)
    click.echo(f"Saved preset '{name}' ({len(rules)} rules)")


@presets.command(name="list")
@click.pass_context
def cmd_preset_list(ctx: click.Context) -> None:
    """List stored presets."""

    with _open_storage(ctx) as storage:
        for preset in storage.list_presets():
            click.echo(f"{preset.name}\t{len(preset.rules)} rules\t{preset.created_at}")


@presets.command(name="show")
@click.argument("name")
@click.pass_context
def cmd_preset_show(ctx: click.Context, name: str) -> None:
    """Print preset NAME as a JSON rule list."""

    with _open_storage(ctx) as storage:
        try:
            rules = storage.get_preset(name)
        except KeyError:
            raise click.ClickException(f"No preset named '{name}'") from None
    click.echo(json.dumps([rule_to_dict(r) for r in rules], indent=2))


@presets.command(name="delete")
@click.argument("name")
@click.pass_context
def cmd_preset_delete(ctx: click.Context, name: str) -> None:
    """Delete preset NAME."""

    with _open_storage(ctx) as storage:
        if not storage.delete_preset(name):
            raise click.ClickException(f"No preset named '{name}'")
    click.echo(f"Deleted preset '{name}'")


@cli.command(name="history")
@click.option("--limit", type=int, default=20, show_default=True)
@click.pass_context
def cmd_history(ctx: click.Context, limit: int) -> None:
    """Show recent operations, newest first."""

    with _open_storage(ctx) as storage:
        for entry in storage.list_history(limit):
            summary = entry.details.get("summary", {})
            click.echo(f"{entry.timestamp}\t{entry.operation_type}\t{summary}")


if __name__ == "__main__":
    cli()
