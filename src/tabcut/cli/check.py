"""Command-line tool for checking design scripts.

The tabcut-check CLI runs a design script, verifies that its faces close,
prints a summary of every face, turtle and path it defines, and optionally
exports their path commands as JSON.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console

from tabcut import __version__
from tabcut.errors import TabcutError
from tabcut.io.export import export_json

from .executor import RestrictedImportError, collect_outputs, execute_design_script
from .report import print_summary, summarize

console = Console()


def check_script(script: Path, output: Path | None, verbose: bool, allow_open: bool) -> int:
    """Run the check and return the exit code."""
    try:
        console.print(f"\n[bold]Design check:[/bold] {script.name}", style="blue")
        console.print("─" * 60)

        script_content = script.read_text()

        console.print("Running script...", style="dim")
        try:
            namespace = execute_design_script(script, script_content, verbose=verbose)
            outputs = collect_outputs(namespace, allow_open=allow_open)
        except RestrictedImportError as e:
            console.print(f"\n[bold red]Security Error:[/bold red] {e}")
            console.print("\n[yellow]Design scripts can only import:[/yellow] tabcut, numpy, math")
            return 1
        except SyntaxError as e:
            console.print("\n[bold red]Syntax Error in script:[/bold red]")
            console.print(f"  {e}")
            return 1
        except TabcutError as e:
            console.print(f"\n[bold red]Geometry Error:[/bold red] {type(e).__name__}: {e}")
            if verbose:
                console.print_exception()
            return 1

        summaries = [summarize(name, value) for name, value in outputs.items()]
        print_summary(console, summaries)

        if output is not None:
            export_json(outputs, output)
            console.print(f"  Output: {output}")

        console.print("✓ [bold green]Design check complete[/bold green]")
        return 0

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        return 1


@click.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Write the path commands of all outputs to this JSON file",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output with debug info")
@click.option(
    "--allow-open",
    is_flag=True,
    help="Do not require unclosed TabbedFace variables to return to their start",
)
@click.version_option(version=__version__, prog_name="tabcut-check")
def main(script: Path, output: Path | None, verbose: bool, allow_open: bool):
    """Check a tabcut design script.

    SCRIPT is the path to a Python file that defines ClosedFace, TabbedFace,
    Turtle or Path variables at top level.

    Example script:

    \b
        from tabcut import Kerf, TabbedFace, TabsOptions, TabsPattern
        options = TabsOptions(kerf=Kerf.millimeters(0.15), tab_width=3)
        edge = TabsPattern.distributed(60, tab_every_len=10)
        face = (
            TabbedFace.create(options)
            .tabs_def("a", edge).right()
            .forward(40).right()
            .tabs("a", reverse=True).right()
            .forward(40).right()
            .close_face()
        )
    """
    sys.exit(check_script(script, output, verbose, allow_open))


if __name__ == "__main__":
    main()
