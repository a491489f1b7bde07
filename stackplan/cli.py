"""
stackplan CLI entry point.
"""
import sys
from typing import Callable, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from stackplan import __version__, compiler, loader
from stackplan.blueprints import BLUEPRINTS
from stackplan.config import DEFAULT_CONFIG_FILE, SiteConfig
from stackplan.errors import CompileError, StackplanError
from stackplan.models.declaration import ResourceDeclaration
from stackplan.models.plan import ProvisioningPlan
from stackplan.reporters import html_reporter, json_reporter, markdown

_FORMATS = ["text", "json", "markdown", "html"]


def _print_plan_table(plan: ProvisioningPlan, no_color: bool) -> None:
    """Print the ordered plan as a rich table to stderr."""
    tbl = Table(title="Provisioning Plan", show_header=True, header_style="bold")
    tbl.add_column("#", style="dim", width=4)
    tbl.add_column("Resource", width=36)
    tbl.add_column("Type", width=44)
    tbl.add_column("Depends on")

    for s in plan.steps:
        tbl.add_row(
            str(s.position),
            s.name,
            s.declaration.resource_type,
            ", ".join(s.depends_on) or "-",
        )

    Console(stderr=True, no_color=no_color).print(tbl)


def _text_report(plan: ProvisioningPlan) -> str:
    lines = [f"{s.position:>3}. {s.name} ({s.declaration.resource_type})" for s in plan.steps]
    if plan.target:
        lines.append(f"target: account={plan.target.get('account') or '-'} region={plan.target.get('region') or '-'}")
    lines.append(f"fingerprint: {plan.fingerprint()}")
    return "\n".join(lines)


def _render(plan: ProvisioningPlan, fmt: str, source_label: str) -> str:
    fmt = fmt.lower()
    if fmt == "json":
        return json_reporter.build_report(plan, source_label)
    if fmt == "markdown":
        return markdown.build_report(plan, source_label)
    if fmt == "html":
        return html_reporter.build_report(plan, source_label)
    return _text_report(plan)


def _run(
    load: Callable[[], Tuple[List[ResourceDeclaration], Optional[Dict[str, Optional[str]]]]],
    source_label: str,
    output_format: str,
    output: Optional[str],
    no_color: bool,
) -> None:
    stderr = Console(stderr=True, no_color=no_color)

    # 1. Load declarations
    with stderr.status("[bold]Loading declarations…"):
        try:
            declarations, target = load()
        except StackplanError as exc:
            stderr.print(f"[red]Load error:[/red] {escape(str(exc))}", soft_wrap=True)
            sys.exit(2)

    if not declarations:
        stderr.print("[yellow]No resource declarations found.[/yellow]")
        sys.exit(0)

    stderr.print(f"Loaded [bold]{len(declarations)}[/bold] declarations.")

    # 2. Compile
    try:
        plan = compiler.compile(declarations, target=target)
    except CompileError as exc:
        stderr.print(f"[red]Compile error:[/red] {escape(str(exc))}", soft_wrap=True)
        sys.exit(1)

    # 3. Summary table when the report goes to a file
    if output:
        _print_plan_table(plan, no_color)

    # 4. Report
    content = _render(plan, output_format, source_label)
    if output:
        try:
            with open(output, "w", encoding="utf-8", newline="\n") as fh:
                fh.write(content)
        except OSError as exc:
            stderr.print(f"[red]Write error:[/red] {escape(str(exc))}", soft_wrap=True)
            sys.exit(2)
        stderr.print(f"Plan written to [bold]{output}[/bold]")
    else:
        click.echo(content)

    sys.exit(0)


def _output_options(fn):
    fn = click.option(
        "--no-color",
        is_flag=True,
        default=False,
        help="Disable rich terminal color output.",
    )(fn)
    fn = click.option(
        "--output", "-o",
        type=click.Path(),
        default=None,
        help="Write the plan to this file (default: stdout).",
    )(fn)
    fn = click.option(
        "--format", "output_format",
        type=click.Choice(_FORMATS, case_sensitive=False),
        default="text",
        show_default=True,
        help="Output format.",
    )(fn)
    return fn


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__)
@click.pass_context
def cli(ctx):
    """stackplan — compile resource declarations into a provisioning plan."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


@cli.command("compile")
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@_output_options
def compile_cmd(
    paths: Tuple[str, ...],
    output_format: str,
    output: Optional[str],
    no_color: bool,
) -> None:
    """
    Compile declaration files or directories into a provisioning plan.

    PATHS can be files or directories; multiple values accepted and
    loaded in the order given.
    """
    _run(lambda: (loader.load_paths(paths), None), ", ".join(paths), output_format, output, no_color)


@cli.command()
@click.argument("blueprint", type=click.Choice(sorted(BLUEPRINTS), case_sensitive=False))
@click.option(
    "--config", "-c", "config_path",
    type=click.Path(),
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Site configuration file.",
)
@_output_options
def synth(
    blueprint: str,
    config_path: str,
    output_format: str,
    output: Optional[str],
    no_color: bool,
) -> None:
    """Build a blueprint from the site config and compile it."""
    build = BLUEPRINTS[blueprint.lower()]

    def load():
        cfg = SiteConfig.from_file(config_path)
        return build(cfg), cfg.env

    _run(load, f"{blueprint} ({config_path})", output_format, output, no_color)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
