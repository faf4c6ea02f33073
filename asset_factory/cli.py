"""
Command-line interface for the asset factory.
Provides commands for generation, history management and project export.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional, List

import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .composer import PixelContract, PromptComposer, category_registry
from .config import FactoryConfig
from .errors import AssetFactoryError, ConfigurationError, SafetyRejectionError
from .generation import GenerationClient, GenerationService, GenerationOutcome, DERIVED_CATEGORIES
from .processing import ArchiveAssembler, ContractValidator, DesignDocument, SLOTS
from .providers import create_provider
from .storage import AssetStore, AssetRecord
from .utils import ImageUtils, setup_logging

# Initialize typer app and rich console
app = typer.Typer(
    name="asset-factory",
    help="RPG Asset Factory - Generate, curate and export RPG Maker MZ assets",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]asset-factory generate character "a knight in silver armor"[/cyan]   Base character
  [cyan]asset-factory derive 1 walking-sprite[/cyan]                         Walking sheet from asset #1
  [cyan]asset-factory plan "a cursed kingdom" --hero 1 --villain 2 --item 3[/cyan]
  [cyan]asset-factory export --plan plan.json --hero 1 --villain 2 --item 3[/cyan]

[bold]Environment Variables:[/bold]
  Use [cyan]asset-factory config --env-vars[/cyan] to see all available variables.
    """
)
console = Console()

EXIT_FAILED = 1
EXIT_BUSY = 2


@app.command()
def generate(
    category: str = typer.Argument(..., help="Asset category (see 'categories')"),
    text: str = typer.Argument("", help="Description of the asset"),
    ref: Optional[List[Path]] = typer.Option(None, "--ref", "-r", help="Reference image, in role order (repeatable)"),
    head: Optional[Path] = typer.Option(None, "--head", help="Head reference for fused-character"),
    pose: Optional[Path] = typer.Option(None, "--pose", help="Pose reference for fused-character"),
    clothing: Optional[Path] = typer.Option(None, "--clothing", help="Clothing reference for fused-character"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Generate a new asset and store it."""
    service = _build_service(config_file)

    if category == "fused-character":
        references = [_read_reference(path) if path else None for path in (head, pose, clothing)]
    else:
        references = [_read_reference(path) for path in ref or []]

    outcome = _with_spinner(f"Generating {category}...", service.generate, category, text, references)
    _report(outcome)


@app.command()
def adjust(
    record_id: int = typer.Argument(..., help="Asset id to adjust"),
    text: str = typer.Argument(..., help="Requested change"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Apply a targeted edit to a stored image (stored as a new asset)."""
    service = _build_service(config_file)
    outcome = _with_spinner(f"Adjusting asset #{record_id}...", service.adjust, record_id, text)
    _report(outcome)


@app.command()
def optimize(
    record_id: int = typer.Argument(..., help="Asset id to optimize"),
    text: str = typer.Argument(..., help="What to improve"),
    style: Optional[int] = typer.Option(None, "--style", help="Asset id to use as a style reference"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Improve the quality of a stored image, optionally matching another asset's style."""
    service = _build_service(config_file)
    outcome = _with_spinner(f"Optimizing asset #{record_id}...", service.optimize, record_id, text, style)
    _report(outcome)


@app.command("remove-background")
def remove_background(
    record_id: int = typer.Argument(..., help="Asset id"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Make the background of a stored image transparent."""
    service = _build_service(config_file)
    outcome = _with_spinner(f"Removing background of asset #{record_id}...", service.remove_background, record_id)
    _report(outcome)


@app.command()
def derive(
    record_id: int = typer.Argument(..., help="Base character asset id"),
    category: str = typer.Argument(..., help=f"One of: {', '.join(DERIVED_CATEGORIES)}"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Derive a walking sprite, battler or faceset from a base character."""
    service = _build_service(config_file)
    outcome = _with_spinner(f"Deriving {category} from asset #{record_id}...", service.derive, record_id, category)
    _report(outcome)


@app.command()
def history(
    category: Optional[str] = typer.Option(None, "--category", help="Only show this storage category"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum number of rows"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """List stored assets, newest first."""
    store = _open_store(_load_config(config_file))
    records = _store_call(store.list_by_category, category) if category else _store_call(store.list_all)

    if not records:
        console.print("[yellow]No assets stored yet.[/yellow]")
        return

    table = Table(title=f"Asset History ({len(records)} total)")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Category", style="magenta")
    table.add_column("Prompt", style="white")
    table.add_column("Created", style="dim")

    for record in records[:limit]:
        table.add_row(str(record.id), record.category, _truncate(record.prompt_text, 60), _format_time(record.created_at))

    console.print(table)


@app.command()
def show(
    record_id: int = typer.Argument(..., help="Asset id"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Show one stored asset."""
    record = _get_record(_open_store(_load_config(config_file)), record_id)

    table = Table(title=f"Asset #{record.id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Category", record.category)
    table.add_row("Prompt", record.prompt_text)
    table.add_row("Created", _format_time(record.created_at))

    if record.is_image:
        image = _store_call(ImageUtils.load_image, record.payload)
        table.add_row("Image", f"{image.size[0]}×{image.size[1]} {image.mode}")
        console.print(table)
    else:
        console.print(table)
        console.print(_pretty_payload(record.payload))


@app.command()
def inspect(
    record_id: int = typer.Argument(..., help="Asset id"),
    category: Optional[str] = typer.Option(None, "--as", help="Category whose contract to check against"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Check a stored image against its category's pixel contract."""
    record = _get_record(_open_store(_load_config(config_file)), record_id)

    name = category or record.category
    if name not in category_registry:
        console.print(f"[red]No contract for category '{name}'.[/red] Use --as to pick one.")
        raise typer.Exit(EXIT_FAILED)

    contract = category_registry.get(name).contract
    if not isinstance(contract, PixelContract):
        console.print(f"[yellow]'{name}' is not an image category; nothing to inspect.[/yellow]")
        return

    result = ContractValidator().validate(record.payload, contract, f"Asset #{record.id}")
    for error in result.errors:
        console.print(f"[red]✗[/red] {error}")
    for warning in result.warnings:
        console.print(f"[yellow]![/yellow] {warning}")

    if result.is_valid and not result.has_warnings:
        console.print(f"[green]✓[/green] Asset #{record.id} matches the '{name}' contract")
    if not result.is_valid:
        raise typer.Exit(EXIT_FAILED)


@app.command()
def delete(
    record_id: int = typer.Argument(..., help="Asset id"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Delete a stored asset. Unknown ids are ignored."""
    store = _open_store(_load_config(config_file))
    _store_call(store.delete_by_id, record_id)
    console.print(f"[green]✓[/green] Deleted asset #{record_id}")


@app.command()
def save(
    record_id: int = typer.Argument(..., help="Asset id"),
    path: Path = typer.Argument(..., help="Output file"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Write a stored asset to a file (image bytes, JSON or text)."""
    record = _get_record(_open_store(_load_config(config_file)), record_id)

    path.parent.mkdir(parents=True, exist_ok=True)
    if record.is_image:
        path.write_bytes(_store_call(ImageUtils.decode_data_uri, record.payload))
    else:
        path.write_text(_pretty_payload(record.payload), encoding="utf-8")

    console.print(f"[green]✓[/green] Saved asset #{record.id} to {path}")


@app.command()
def plan(
    concept: str = typer.Argument(..., help="Game concept"),
    hero: int = typer.Option(..., "--hero", help="Character asset id"),
    villain: int = typer.Option(..., "--villain", help="Monster asset id"),
    item: int = typer.Option(..., "--item", help="Item or equipment asset id"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the plan JSON here"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Generate a game design document from a concept and three assets."""
    service = _build_service(config_file)
    slots = {"hero": hero, "villain": villain, "key_item": item}
    outcome = _with_spinner("Designing game plan...", service.generate_game_plan, concept, slots)
    _report(outcome)
    _show_plan(outcome, output)


@app.command("adjust-plan")
def adjust_plan(
    plan_file: Path = typer.Argument(..., help="Game plan JSON file"),
    text: str = typer.Argument(..., help="Requested change"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the revised plan here"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Revise a game plan as a whole document."""
    service = _build_service(config_file)
    current = _load_plan(plan_file)
    outcome = _with_spinner("Revising game plan...", service.adjust_game_plan, current, text)
    _report(outcome)
    _show_plan(outcome, output)


@app.command()
def inspire(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the plan JSON here"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Build a game plan from the newest character, monster and item."""
    service = _build_service(config_file)
    outcome = _with_spinner("Looking for inspiration...", service.flash_of_inspiration)
    _report(outcome)
    _show_plan(outcome, output)


@app.command()
def export(
    plan_file: Path = typer.Option(..., "--plan", help="Game plan JSON file"),
    hero: int = typer.Option(..., "--hero", help="Character asset id"),
    villain: int = typer.Option(..., "--villain", help="Monster asset id"),
    item: int = typer.Option(..., "--item", help="Item or equipment asset id"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Assemble an RPG Maker MZ project archive."""
    config = _load_config(config_file)
    store = _open_store(config)
    document = _load_plan(plan_file)

    bindings = {
        "hero": _get_record(store, hero),
        "villain": _get_record(store, villain),
        "key_item": _get_record(store, item),
    }

    assembler = ArchiveAssembler()
    try:
        archive_path = assembler.write(document, bindings, output_dir or Path(config.export_dir))
    except AssetFactoryError as e:
        _print_error(e)
        raise typer.Exit(EXIT_FAILED)

    console.print(f"[green]✓[/green] Wrote {archive_path}")
    for name in assembler.list_entries(archive_path.read_bytes()):
        console.print(f"  [dim]{name}[/dim]")


@app.command()
def categories():
    """List asset categories and their output contracts."""
    table = Table(title="Asset Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Mode", style="magenta")
    table.add_column("References", justify="center")
    table.add_column("Stored As", style="green")
    table.add_column("Description", style="white")

    for spec in category_registry:
        if spec.max_references == 0:
            refs = "-"
        elif spec.max_references is None:
            refs = f"{spec.min_references}+"
        elif spec.min_references == spec.max_references:
            refs = str(spec.min_references)
        else:
            refs = f"{spec.min_references}-{spec.max_references}"
        table.add_row(spec.name, spec.mode.value, refs, spec.storage_category, spec.description)

    console.print(table)
    slots = ", ".join(f"{slot.name} ({'/'.join(slot.accepts)})" for slot in SLOTS.values())
    console.print(f"\n[dim]Export slots: {slots}[/dim]")


@app.command()
def config(
    init: bool = typer.Option(False, "--init", help="Write a default asset_factory.toml"),
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate_config: bool = typer.Option(False, "--validate", help="Validate configuration"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage factory configuration."""
    if env_vars:
        _display_env_vars()
        return

    if init:
        target = config_file or Path("asset_factory.toml")
        if target.exists():
            console.print(f"[red]Refusing to overwrite existing file:[/red] {target}")
            raise typer.Exit(EXIT_FAILED)
        FactoryConfig().write_toml(target)
        console.print(f"[green]✓[/green] Wrote default configuration to {target}")
        return

    if show or validate_config:
        cfg = _load_config(config_file)

        if show:
            _display_config(cfg)

        if validate_config:
            errors = cfg.validate()
            if errors:
                console.print("[red]Configuration validation errors:[/red]")
                for error in errors:
                    console.print(f"  • {error}")
                raise typer.Exit(EXIT_FAILED)
            console.print("[green]✓ Configuration is valid[/green]")
    else:
        console.print("Use --init to create a config file, --show to display it, --validate to check it, "
                      "or --env-vars to see environment variables.")


@app.command()
def version():
    """Show version information."""
    console.print(f"RPG Asset Factory v{__version__}")


def _load_config(config_file: Optional[Path]) -> FactoryConfig:
    """Load configuration from file or use defaults with environment variable support."""
    cfg = None

    try:
        if config_file:
            if not config_file.exists():
                console.print(f"[red]Configuration file not found:[/red] {config_file}")
                raise typer.Exit(EXIT_FAILED)
            cfg = FactoryConfig.from_file(config_file)
        else:
            for config_path in (Path("asset_factory.toml"), Path("asset_factory.json")):
                if config_path.exists():
                    cfg = FactoryConfig.from_file(config_path)
                    break
    except (ValueError, TypeError, OSError) as e:
        console.print(f"[red]Cannot read configuration:[/red] {e}")
        raise typer.Exit(EXIT_FAILED)

    if cfg is None:
        cfg = FactoryConfig()

    cfg = FactoryConfig._apply_env_overrides(cfg)
    setup_logging(cfg.log_level)
    return cfg


def _open_store(cfg: FactoryConfig) -> AssetStore:
    try:
        return AssetStore(cfg.database)
    except AssetFactoryError as e:
        _print_error(e)
        raise typer.Exit(EXIT_FAILED)


def _build_service(config_file: Optional[Path]) -> GenerationService:
    """Wire provider, client, store and composer from configuration."""
    cfg = _load_config(config_file)

    errors = cfg.validate()
    if errors:
        console.print("[red]Configuration errors:[/red]")
        for error in errors:
            console.print(f"  • {error}")
        raise typer.Exit(EXIT_FAILED)

    try:
        provider = create_provider(cfg.provider, cfg.provider_config())
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(EXIT_FAILED)

    return GenerationService(GenerationClient(provider), _open_store(cfg), composer=PromptComposer(cfg.style))


def _with_spinner(description: str, func, *args):
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True
    ) as progress:
        progress.add_task(description, total=None)
        return func(*args)


def _report(outcome: GenerationOutcome) -> None:
    """Print an outcome; exit 2 when busy and 1 when failed."""
    if outcome.busy:
        console.print("[yellow]Another generation is in progress. Try again when it finishes.[/yellow]")
        raise typer.Exit(EXIT_BUSY)

    if outcome.failed:
        _print_error(outcome.error)
        raise typer.Exit(EXIT_FAILED)

    console.print(f"[green]✓[/green] Stored {outcome.category} as asset #{outcome.record_id}")
    for warning in outcome.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")


def _print_error(error: AssetFactoryError) -> None:
    console.print(f"[red]{error.kind.value}:[/red] {error.message}")
    if isinstance(error, SafetyRejectionError):
        for rating in error.ratings:
            console.print(f"  • {rating['category']}: {rating['probability']}")
    elif error.detail.get("provider_text"):
        console.print(f"  [dim]{error.detail['provider_text']}[/dim]")


def _store_call(func, *args):
    try:
        return func(*args)
    except AssetFactoryError as e:
        _print_error(e)
        raise typer.Exit(EXIT_FAILED)


def _get_record(store: AssetStore, record_id: int) -> AssetRecord:
    record = _store_call(store.get, record_id)
    if record is None:
        console.print(f"[red]Asset #{record_id} not found.[/red]")
        raise typer.Exit(EXIT_FAILED)
    return record


def _read_reference(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]Reference image not found:[/red] {path}")
        raise typer.Exit(EXIT_FAILED)
    data = path.read_bytes()
    return ImageUtils.to_data_uri(data, ImageUtils.sniff_mime_type(data))


def _load_plan(plan_file: Path) -> DesignDocument:
    try:
        with open(plan_file, "r", encoding="utf-8") as f:
            return DesignDocument.from_dict(json.load(f))
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot read game plan:[/red] {e}")
        raise typer.Exit(EXIT_FAILED)
    except AssetFactoryError as e:
        _print_error(e)
        raise typer.Exit(EXIT_FAILED)


def _show_plan(outcome: GenerationOutcome, output: Optional[Path]) -> None:
    document = outcome.document
    if document is None:
        return

    console.print(f"\n[bold]{document.title}[/bold]")
    console.print(f"[italic]{document.story.tagline}[/italic]\n")
    console.print(document.story.summary)

    table = Table(title="Cast")
    table.add_column("Section", style="magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    for section in ("actors", "enemies", "items", "maps"):
        for entry in getattr(document, section):
            table.add_row(section, entry.id, entry.name)
    console.print(table)

    for quest in document.quests:
        console.print(f"[bold]{quest.title}[/bold]: {quest.objective}")
        for step in quest.steps:
            console.print(f"  • {step}")

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(document.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]✓[/green] Wrote plan to {output}")


def _pretty_payload(payload: str) -> str:
    try:
        return json.dumps(json.loads(payload), indent=2, ensure_ascii=False)
    except ValueError:
        return payload


def _truncate(text: str, width: int) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[:width - 1] + "…"


def _format_time(created_at: int) -> str:
    return datetime.fromtimestamp(created_at / 1000).strftime("%Y-%m-%d %H:%M:%S")


def _display_config(cfg: FactoryConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="Asset Factory Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Provider", cfg.provider)
    table.add_row("API Key", "***" if cfg.api_key else "[red]not set[/red]")
    table.add_row("API Base URL", cfg.base_url)
    table.add_row("Image Model", cfg.image_model)
    table.add_row("Edit Model", cfg.edit_model)
    table.add_row("Text Model", cfg.text_model)
    table.add_row("Timeout", "none" if cfg.timeout is None else f"{cfg.timeout}s")
    table.add_row("Database", str(cfg.database_path))
    table.add_row("Export Directory", cfg.export_dir)
    table.add_row("Style", cfg.style)
    table.add_row("Log Level", cfg.log_level)

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="Asset Factory Environment Variables")
    table.add_column("Environment Variable", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    env_vars = [
        ("ASSET_FACTORY_PROVIDER", "Provider to use (gemini, stub)", "gemini"),
        ("ASSET_FACTORY_API_KEY", "Provider API key (overrides GEMINI_API_KEY)", "AIza..."),
        ("GEMINI_API_KEY", "Gemini API key", "AIza..."),
        ("ASSET_FACTORY_BASE_URL", "Provider API base URL", "https://generativelanguage.googleapis.com/v1beta"),
        ("ASSET_FACTORY_IMAGE_MODEL", "Text-to-image model", "imagen-4.0-generate-001"),
        ("ASSET_FACTORY_EDIT_MODEL", "Image-conditioned model", "gemini-2.5-flash-image-preview"),
        ("ASSET_FACTORY_TEXT_MODEL", "Structured/text model", "gemini-2.5-flash"),
        ("ASSET_FACTORY_TIMEOUT", "HTTP timeout in seconds", "120"),
        ("ASSET_FACTORY_DATABASE", "SQLite database path", "~/.rpg_asset_factory/assets.db"),
        ("ASSET_FACTORY_EXPORT_DIR", "Archive output directory", "exports"),
        ("ASSET_FACTORY_STYLE", "Pixel art style (jrpg, retro, hd)", "jrpg"),
        ("ASSET_FACTORY_LOG_LEVEL", "Logging level", "INFO"),
    ]

    for var_name, description, example in env_vars:
        table.add_row(var_name, description, example)

    console.print(table)
    console.print("\n[dim]Set these environment variables to override configuration file settings.[/dim]")
    console.print("[dim]Example: export ASSET_FACTORY_PROVIDER=stub[/dim]")


if __name__ == "__main__":
    app()
