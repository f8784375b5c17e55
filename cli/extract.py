"""
CLI Entry Point for the DataStage DSX Extractor

Usage:
    python -m cli.extract analyze --source <job.dsx>
    python -m cli.extract extract --source <path> [--source <path> ...] --output <jobs.zip>
    python -m cli.extract validate --source <job.dsx>
    python -m cli.extract config show
"""

import click
import json
import yaml
from pathlib import Path
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.syntax import Syntax
from rich.markup import escape

console = Console()


def get_config_path(ctx) -> Path:
    """Get config path from context or default."""
    return ctx.obj.get("config_path") if ctx.obj else Path(__file__).parent.parent / "config"


def _load_config(ctx):
    """Load configuration, falling back to defaults when no file exists."""
    from dsx_extractor.config_loader import ConfigLoader, ExtractionConfig

    try:
        return ConfigLoader(get_config_path(ctx)).load_config()
    except FileNotFoundError as e:
        console.print(f"[yellow]{e}; using defaults[/yellow]")
        return ExtractionConfig()


@click.group()
@click.option(
    "--config-dir", "-c",
    type=click.Path(exists=True),
    default=None,
    help="Path to configuration directory"
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version="1.2.0")
@click.pass_context
def cli(ctx, config_dir: str, verbose: bool):
    """DataStage DSX Extractor.

    Extracts structured job descriptions (parameters, sources, targets,
    transforms, lookups and data flow) from DataStage .dsx exports.

    Use --config-dir to specify custom configuration.
    """
    ctx.ensure_object(dict)

    if config_dir:
        ctx.obj["config_path"] = Path(config_dir)
    else:
        ctx.obj["config_path"] = Path(__file__).parent.parent / "config"

    from dsx_extractor.config_loader import ConfigLoader, ExtractionConfig, configure_logging

    try:
        log_level = ConfigLoader(ctx.obj["config_path"]).load_config().log_level
    except (FileNotFoundError, yaml.YAMLError):
        log_level = ExtractionConfig().log_level
    configure_logging("DEBUG" if verbose else log_level)


# =============================================================================
# CONFIGURATION COMMANDS
# =============================================================================

@cli.group()
def config():
    """Manage extraction configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx):
    """Display current configuration settings."""
    from dsx_extractor.config_loader import ConfigLoader

    loader = ConfigLoader(get_config_path(ctx))
    try:
        config = loader.load_config()
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise click.Abort()

    console.print(Panel(
        f"[bold]{config.config_name}[/bold] v{config.version}",
        title="Configuration"
    ))

    table = Table(title="Extraction Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("File Extension", config.file_extension)
    table.add_row("Encoding", config.encoding)
    table.add_row("Token Count", "Enabled" if config.include_token_count else "Disabled")
    table.add_row("Chars per Token", str(config.chars_per_token))
    table.add_row("Continue on Error", "Yes" if config.continue_on_error else "No")
    table.add_row("Export Archive", config.export_archive_name)
    table.add_row("Export Indent", str(config.export_indent))
    table.add_row("Log Level", config.log_level)

    console.print(table)


@config.command("validate")
@click.pass_context
def config_validate(ctx):
    """Validate configuration file."""
    from dsx_extractor.config_loader import ConfigLoader

    loader = ConfigLoader(get_config_path(ctx))
    try:
        config = loader.load_config()
    except (FileNotFoundError, yaml.YAMLError) as e:
        console.print(f"[red]✗[/red] Configuration error: {e}")
        raise click.Abort()

    problems = loader.validate(config)
    if problems:
        console.print("[red]✗[/red] Configuration is invalid")
        for problem in problems:
            console.print(f"  - {problem}")
        raise click.Abort()

    console.print("[green]✓[/green] Configuration is valid")
    console.print(f"  - extension {config.file_extension}, {config.chars_per_token} chars/token")


# =============================================================================
# ANALYSIS COMMANDS
# =============================================================================

@cli.command()
@click.option(
    "--source", "-s",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="Path to a DataStage .dsx file"
)
@click.option(
    "--format", "-f",
    type=click.Choice(["json", "yaml", "table"]),
    default="table",
    help="Output format"
)
@click.option("--token-count", is_flag=True, default=None, help="Include estimated token usage")
@click.option("--context", "show_context", is_flag=True, help="Print the structured LLM context instead")
@click.pass_context
def analyze(ctx, source: str, format: str, token_count: bool, show_context: bool):
    """Analyze a single .dsx job export.

    Parses the job and displays its parameters, stages, data flow and
    validation issues.
    """
    from dsx_extractor.datastage import DSXParser
    from dsx_extractor.estimation import estimate_token_usage
    from dsx_extractor.exceptions import DocumentReadError
    from dsx_extractor.validation import validate_job_info

    config = _load_config(ctx)
    include_tokens = config.include_token_count if token_count is None else token_count

    try:
        parser = DSXParser.from_file(source, encoding=config.encoding)
    except DocumentReadError as e:
        console.print(f"[red]{e}[/red]")
        raise click.Abort()

    job = parser.parse()
    usage = None
    if include_tokens:
        usage = estimate_token_usage(job, chars_per_token=config.chars_per_token)
        job = job.with_token_count(usage.total)
    report = validate_job_info(job)

    if show_context:
        click.echo(parser.build_structured_context(job))
        return

    if format in ("json", "yaml"):
        result = {"data": job.to_dict(), "validation": report.to_dict()}
        if usage is not None:
            result["tokenUsage"] = usage.to_dict()
        if format == "json":
            click.echo(json.dumps(result, indent=config.export_indent, ensure_ascii=False))
        else:
            click.echo(yaml.safe_dump(result, default_flow_style=False, sort_keys=False, allow_unicode=True))
    else:
        _display_job(job, report, usage)


def _display_job(job, report, usage):
    """Display a job in rich table format."""
    console.print(Panel(
        f"[bold]{escape(job.name or '<unnamed>')}[/bold] ({job.type or 'unknown type'})\n{escape(job.description)}",
        title="Job Overview"
    ))

    summary_table = Table(title="Job Summary")
    summary_table.add_column("Section", style="cyan")
    summary_table.add_column("Count", justify="right", style="green")
    for section in job.SECTIONS:
        summary_table.add_row(section.replace("_", " ").title(), str(len(getattr(job, section))))
    if usage is not None:
        summary_table.add_row("Estimated Tokens", str(usage.total))

    console.print(summary_table)
    console.print()

    if job.parameters:
        param_table = Table(title="Parameters")
        param_table.add_column("Name", style="cyan")
        param_table.add_column("Type", style="yellow")
        param_table.add_column("Default", style="green", max_width=40)
        for param in job.parameters:
            param_table.add_row(param.name, param.type, param.default or "-")
        console.print(param_table)
        console.print()

    if job.sources or job.targets:
        stage_table = Table(title="Sources and Targets")
        stage_table.add_column("Name", style="cyan")
        stage_table.add_column("Role", style="magenta")
        stage_table.add_column("Type", style="yellow")
        stage_table.add_column("Table / Dataset", style="green")
        for src in job.sources:
            stage_table.add_row(src.name, "source", src.type, src.table or "-")
        for tgt in job.targets:
            stage_table.add_row(tgt.name, "target", tgt.type, tgt.table or tgt.dataset or "-")
        console.print(stage_table)
        console.print()

    for script in job.sql_scripts:
        console.print(f"[bold]{script.type} SQL[/bold] ({script.stage})")
        console.print(Syntax(script.sql, "sql"))
        console.print()

    if job.flow:
        flow_table = Table(title="Data Flow")
        flow_table.add_column("Link", style="cyan")
        flow_table.add_column("From", style="yellow")
        flow_table.add_column("To", style="green")
        flow_table.add_column("Columns", justify="right")
        for link in job.flow:
            flow_table.add_row(link.link, link.from_stage, link.to_stage, str(len(link.columns or ())))
        console.print(flow_table)
        console.print()

    _display_validation(report)


def _display_validation(report):
    if report.valid:
        console.print("[green]✓[/green] No validation issues")
        return
    console.print(f"[yellow]Validation issues ({len(report.issues)}):[/yellow]")
    for issue in report.issues:
        console.print(f"  - {escape(issue)}")


@cli.command()
@click.option(
    "--source", "-s",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="Path to a DataStage .dsx file"
)
@click.pass_context
def validate(ctx, source: str):
    """Validate a .dsx job; exits non-zero when issues are found."""
    from dsx_extractor.datastage import DSXParser
    from dsx_extractor.exceptions import DocumentReadError
    from dsx_extractor.validation import validate_job_info

    config = _load_config(ctx)
    try:
        job = DSXParser.from_file(source, encoding=config.encoding).parse()
    except DocumentReadError as e:
        console.print(f"[red]{e}[/red]")
        raise click.Abort()

    report = validate_job_info(job)
    console.print(f"\n[bold blue]Validating:[/bold blue] {job.name or Path(source).name}\n")
    _display_validation(report)
    if not report.valid:
        ctx.exit(1)


# =============================================================================
# EXTRACTION COMMANDS
# =============================================================================

@cli.command()
@click.option(
    "--source", "-s",
    type=click.Path(exists=True),
    multiple=True,
    required=True,
    help=".dsx file, .zip archive or directory (repeatable)"
)
@click.option("--output", "-o", type=click.Path(), default=None, help="Output zip archive")
@click.option("--token-count", is_flag=True, default=None, help="Include estimated token usage")
@click.option("--continue-on-error", is_flag=True, default=None, help="Skip failing documents")
@click.pass_context
def extract(ctx, source: tuple, output: str, token_count: bool, continue_on_error: bool):
    """Extract every job from the given sources into a zip of JSON files."""
    from dsx_extractor.batch import BatchProcessor, collect_documents, write_results_zip
    from dsx_extractor.exceptions import BatchProcessingError

    config = _load_config(ctx)
    output_path = Path(output or config.export_archive_name)

    collected = collect_documents(source, extension=config.file_extension, encoding=config.encoding)
    for name, reason in collected.failures.items():
        console.print(f"[yellow]Could not read {escape(name)}: {escape(reason)}[/yellow]")

    if not collected.documents:
        console.print(f"[red]No {config.file_extension} files found[/red]")
        raise click.Abort()

    processor = BatchProcessor(
        include_token_count=config.include_token_count if token_count is None else token_count,
        continue_on_error=config.continue_on_error if continue_on_error is None else continue_on_error,
        chars_per_token=config.chars_per_token,
    )

    with console.status(f"[bold green]Extracting {len(collected.documents)} job(s)..."):
        try:
            results = processor.process(collected.documents)
        except BatchProcessingError as e:
            console.print(f"[red]{e}[/red]")
            raise click.Abort()

    write_results_zip(results, output_path, indent=config.export_indent)

    table = Table(title="Extracted Jobs")
    table.add_column("File", style="cyan")
    table.add_column("Job", style="green")
    table.add_column("Type", style="yellow")
    table.add_column("Valid", justify="center")
    if processor.include_token_count:
        table.add_column("Tokens", justify="right")

    for result in results:
        row = [
            result.original_file,
            result.data.name or "-",
            result.data.type or "-",
            "✓" if result.validation.valid else f"{len(result.validation.issues)} issue(s)",
        ]
        if processor.include_token_count:
            row.append(str(result.token_usage.total))
        table.add_row(*row)

    console.print(table)
    for failure in processor.failures:
        console.print(f"[yellow]Skipped {failure.file_name}: {escape(failure.error)}[/yellow]")

    console.print(Panel(
        f"[green]Extraction complete![/green]\n\n"
        f"Jobs: {len(results)}\n"
        f"Output: {output_path}",
        title="Summary"
    ))


if __name__ == "__main__":
    cli()
