#!/usr/bin/env python3
"""
CV Rendering CLI

Renders CV JSON files to PDF or HTML with the catalog templates, and inspects
rendered PDFs.

Commands:
    generate  - Render a CV to PDF
    preview   - Render a CV to HTML (no browser needed)
    templates - List the template catalog
    sample    - Write the built-in sample CV as JSON
    inspect   - Show page count and text of a rendered PDF

Examples:\n

    render_cv.py generate cv.json --template modern-amber   # Render a CV file

    render_cv.py generate --sample -o outs/sample.pdf        # Render the sample CV

    render_cv.py preview cv.json --template graduate         # HTML for a legacy id

    render_cv.py inspect outs/sample.pdf                     # Page count and text
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from safira.contexts.intake import sample_cv
from safira.contexts.rendering import RenderingService
from safira.contexts.rendering.logger import setup_rendering_logger
from safira.contexts.rendering.service import DEFAULT_TEMPLATE
from safira.contexts.templating import TemplateRegistry
from safira.exceptions import SafiraError
from safira.utils.pdf_processing import extract_page_texts, page_count
from safira.utils.text_processing import cv_filename, truncate_display
from safira.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("SAFIRA_LOGS_PATH", "outs/logs"))
OUTPUT_PATH = Path(os.getenv("SAFIRA_OUTPUT_PATH", "outs/cv"))


def display_path(path: Path) -> str:
    """Return path relative to the working directory for cleaner display."""
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


def load_cv_data(cv_file: Optional[Path], use_sample: bool) -> dict:
    """Read CV JSON from a file, or return the built-in sample."""
    if use_sample:
        return sample_cv()
    if cv_file is None:
        typer.secho("Error: provide a CV JSON file or --sample\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if not cv_file.exists():
        typer.secho(f"Error: CV file not found: {cv_file}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    try:
        data = json.loads(cv_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        typer.secho(f"Error: {cv_file} is not valid JSON ({e})\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    # Accept both the bare cvData object and a full {template, cvData} request body
    return data.get("cvData", data) if isinstance(data, dict) else data


def default_output(cv_data: dict, extension: str) -> Path:
    info = cv_data.get("personalInfo") if isinstance(cv_data, dict) else None
    if not isinstance(info, dict):
        info = {}
    return OUTPUT_PATH / cv_filename(str(info.get("firstName", "")), str(info.get("lastName", "")), extension)


def report_error(error: SafiraError) -> None:
    typer.secho(f"✗ {error.category}: {error.message}", fg=typer.colors.RED, bold=True, err=True)
    valid_ids = getattr(error, "valid_ids", None)
    if valid_ids:
        typer.echo(f"  Valid templates: {', '.join(valid_ids)}", err=True)


app = typer.Typer(
    help="Render CVs to PDF/HTML with the SAFIRA template catalog",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("generate")
def generate_command(
    cv_file: Annotated[
        Optional[Path],
        typer.Argument(help="CV JSON file (cvData object or full request body)"),
    ] = None,
    template: Annotated[
        str,
        typer.Option("--template", "-t", help="Template id or legacy alias"),
    ] = DEFAULT_TEMPLATE,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output PDF path (default: outs/cv/<First>_<Last>_CV.pdf)"),
    ] = None,
    use_sample: Annotated[
        bool,
        typer.Option("--sample", help="Render the built-in sample CV"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Also print the extracted text of every page"),
    ] = False,
):
    """
    Render a CV to PDF with headless Chromium.

    Examples:\n

        $ render_cv.py generate cv.json                        # Default template

        $ render_cv.py generate cv.json -t teal-sidebar        # Specific template

        $ render_cv.py generate --sample -o sample.pdf         # Sample CV
    """
    cv_data = load_cv_data(cv_file, use_sample)
    output = output or default_output(cv_data, "pdf")

    log_dir = LOGS_PATH / f"render_{now()}"
    setup_rendering_logger(log_dir=log_dir)

    typer.secho(f"\nRendering with template: {template}", fg=typer.colors.BLUE, bold=True)
    typer.echo("")

    async def _render() -> bytes:
        async with RenderingService() as service:
            return await service.generate(cv_data, template)

    try:
        pdf = asyncio.run(_render())
    except SafiraError as e:
        report_error(e)
        typer.echo(f"  Log: {display_path(log_dir / 'render.log')}\n")
        raise typer.Exit(code=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(pdf)

    typer.echo("")
    typer.secho("✓ PDF generated", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Pages: {page_count(pdf)}")
    typer.echo(f"  Size: {len(pdf):,} bytes")
    typer.echo(f"  PDF: {display_path(output)}")
    typer.echo(f"  Log: {display_path(log_dir / 'render.log')}")

    if verbose:
        for number, text in enumerate(extract_page_texts(pdf), start=1):
            typer.secho(f"\n--- Page {number} ---", bold=True)
            typer.echo(text)
    typer.echo("")


@app.command("preview")
def preview_command(
    cv_file: Annotated[
        Optional[Path],
        typer.Argument(help="CV JSON file (cvData object or full request body)"),
    ] = None,
    template: Annotated[
        str,
        typer.Option("--template", "-t", help="Template id or legacy alias"),
    ] = DEFAULT_TEMPLATE,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output HTML path (default: outs/cv/<First>_<Last>_CV.html)"),
    ] = None,
    use_sample: Annotated[
        bool,
        typer.Option("--sample", help="Render the built-in sample CV"),
    ] = False,
):
    """
    Render a CV to HTML without launching the browser.

    Examples:\n

        $ render_cv.py preview cv.json -t modern-sections      # HTML preview

        $ render_cv.py preview --sample                         # Sample CV
    """
    cv_data = load_cv_data(cv_file, use_sample)
    output = output or default_output(cv_data, "html")

    try:
        html = asyncio.run(RenderingService().preview(cv_data, template))
    except SafiraError as e:
        report_error(e)
        raise typer.Exit(code=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")

    typer.secho("\n✓ HTML generated", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Size: {len(html):,} chars")
    typer.echo(f"  HTML: {display_path(output)}\n")


@app.command("templates")
def templates_command(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show theme colors and layout families"),
    ] = False,
):
    """
    List the template catalog and legacy aliases.

    Examples:\n

        $ render_cv.py templates                                # Ids and names

        $ render_cv.py templates --verbose                      # With themes
    """
    registry = TemplateRegistry()

    typer.secho(f"\n{len(registry.list())} templates\n", fg=typer.colors.BLUE, bold=True)
    for descriptor in registry.list():
        typer.echo(
            f"  {descriptor.id:<20} {descriptor.display_name:<20} "
            f"{descriptor.category:<12} {truncate_display(descriptor.description, 40)}"
        )
        if verbose:
            typer.echo(
                f"  {'':<20} layout={descriptor.layout_family} accent={descriptor.accent_color} "
                f"secondary={descriptor.secondary_color} tint={descriptor.tint_color} "
                f"sections={descriptor.section_style}"
            )

    typer.secho("\nAliases", bold=True)
    for alias, target in registry.aliases.items():
        typer.echo(f"  {alias:<20} -> {target}")
    typer.echo("")


@app.command("sample")
def sample_command(
    output: Annotated[
        Path,
        typer.Argument(help="Where to write the sample CV JSON"),
    ] = Path("sample_cv.json"),
):
    """
    Write the built-in sample CV as JSON, a starting point for your own.

    Examples:\n

        $ render_cv.py sample                                  # ./sample_cv.json

        $ render_cv.py sample my_cv.json
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(sample_cv(), indent=2, ensure_ascii=False), encoding="utf-8")
    typer.secho(f"\n✓ Sample CV written to {display_path(output)}\n", fg=typer.colors.GREEN, bold=True)


@app.command("inspect")
def inspect_command(
    pdf_file: Annotated[
        Path,
        typer.Argument(help="Rendered PDF to inspect"),
    ],
):
    """
    Show page count and extracted text of a rendered PDF.

    Examples:\n

        $ render_cv.py inspect outs/cv/Biruh_Tesfaye_CV.pdf
    """
    if not pdf_file.exists():
        typer.secho(f"Error: PDF not found: {pdf_file}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    pages = page_count(pdf_file)
    if pages is None:
        typer.secho(f"✗ Not a readable PDF: {display_path(pdf_file)}\n", fg=typer.colors.RED, bold=True)
        raise typer.Exit(code=1)

    typer.secho(f"\n{display_path(pdf_file)}: {pages} page(s)", fg=typer.colors.BLUE, bold=True)
    for number, text in enumerate(extract_page_texts(pdf_file), start=1):
        typer.secho(f"\n--- Page {number} ---", bold=True)
        typer.echo(text)
    typer.echo("")


if __name__ == "__main__":
    app()
