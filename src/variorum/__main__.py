"""CLI entry point for Variorum."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from variorum.collation import (
    CollationError,
    GapKind,
    WhitespaceTokenizer,
    alignment_table,
    collate as collate_witnesses,
)
from variorum.collation.tokenize import SIGLA
from variorum.config import VERSION, Settings, load_settings

console = Console()

GAP_COLORS = {
    GapKind.ADDITION: "green",
    GapKind.OMISSION: "red",
    GapKind.REPLACEMENT: "yellow",
    GapKind.TRANSPOSITION: "magenta",
}


@click.group()
@click.version_option(version=VERSION)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file",
)
@click.option("--log-level", default="warning", help="Log level")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str):
    """Variorum - variant-graph collation of textual witnesses."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = load_settings(config_path)
    except (ValueError, TypeError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("witnesses", nargs=-1, required=True)
@click.option(
    "--inline", "-i", is_flag=True, help="Treat arguments as witness text, not files"
)
@click.option("--sigil", "-s", multiple=True, help="Sigil per witness (default A, B, ...)")
@click.option("--near-threshold", type=int, default=None, help="Max near-match edit distance")
@click.option(
    "--transposition-limit",
    type=int,
    default=None,
    help="Crossed tokens allowed per transposed token",
)
@click.option("--output", "-o", type=click.Path(), help="Output JSON to file")
@click.pass_obj
def collate(
    settings: Settings,
    witnesses: tuple[str, ...],
    inline: bool,
    sigil: tuple[str, ...],
    near_threshold: int | None,
    transposition_limit: int | None,
    output: str | None,
):
    """Collate witnesses and print the alignment table.

    Example: variorum collate -i "the black cat" "the white cat"
    """
    try:
        settings = settings.replace(
            near_match_threshold=near_threshold,
            transposition_limit=transposition_limit,
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if sigil and len(sigil) != len(witnesses):
        console.print("[red]Error: give one --sigil per witness[/red]")
        sys.exit(1)
    if not sigil and len(witnesses) > len(SIGLA):
        console.print(f"[red]Error: at most {len(SIGLA)} witnesses without --sigil[/red]")
        sys.exit(1)
    sigla = list(sigil) or [SIGLA[i] for i in range(len(witnesses))]

    texts = []
    for source in witnesses:
        if inline:
            texts.append(source)
            continue
        path = Path(source)
        if not path.exists():
            console.print(f"[red]Error: witness file not found: {source}[/red]")
            sys.exit(1)
        texts.append(path.read_text(encoding="utf-8"))

    tokenizer = WhitespaceTokenizer()
    parsed = [tokenizer.tokenize(s, text) for s, text in zip(sigla, texts)]

    try:
        graph = collate_witnesses(parsed, settings)
    except CollationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    table = alignment_table(graph)
    result = {
        "table": table.to_dict(),
        "transpositions": [t.to_dict() for t in graph.transposition_list()],
        "gaps": [g.to_dict() for g in graph.gaps()],
    }

    if output:
        Path(output).write_text(json.dumps(result, indent=2, ensure_ascii=False))
        console.print(f"[green]✓ Output written to {output}[/green]")
        return

    variant = set(table.variant_columns())
    view = Table(title="Alignment", show_lines=False)
    view.add_column("Witness", style="bold cyan")
    for i in range(len(table)):
        view.add_column(str(i + 1), style="yellow" if i in variant else None)
    for s in table.sigils:
        view.add_row(
            s, *[cell.display_form if cell is not None else "" for cell in table.row(s)]
        )
    console.print(view)

    transpositions = graph.transposition_list()
    if transpositions:
        console.print(f"\n[bold magenta]Transpositions ({len(transpositions)})[/bold magenta]")
        for t in transpositions:
            phrases = sorted(
                " ".join(sorted({tok.display_form for tok in phrase})) for phrase in t.phrases
            )
            console.print(
                f"  • {t.witness}: {' <-> '.join(phrases)} (distance {t.distance})"
            )

    gaps = graph.gaps()
    if gaps:
        console.print(f"\n[bold]Differences ({len(gaps)})[/bold]")
        for gap in gaps:
            color = GAP_COLORS[gap.kind]
            graph_text = " ".join(str(graph.vertex(v)) for v in gap.graph_vertices)
            console.print(
                f"  [{color}]{gap.kind.value:<13}[/{color}] {gap.witness}: "
                f"{graph_text or '-'} → {gap.witness_text or '-'}"
            )


@cli.command()
@click.option("--host", default=None, help="Bind host")
@click.option("--port", type=int, default=None, help="Bind port")
@click.option("--log-level", "server_log_level", default="info", help="Server log level")
@click.pass_obj
def serve(settings: Settings, host: str | None, port: int | None, server_log_level: str):
    """Start the collation API server."""
    import uvicorn

    from variorum.api.main import create_app

    settings = settings.replace(host=host, port=port)
    console.print(
        f"[bold blue]Starting Variorum API at http://{settings.host}:{settings.port}[/bold blue]"
    )
    console.print(
        f"[dim]max parallel collations: {settings.max_parallel_collations}, "
        f"max collation size: {settings.max_collation_size or 'unlimited'}[/dim]"
    )
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=server_log_level,
    )


def main():
    cli()


if __name__ == "__main__":
    main()
