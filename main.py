"""SEM Ad Writer — Command Line Entry Point.

Usage:
    # Generate every ad group in a campaign file, print, and export CSV
    python main.py generate --input campaign.json --csv ads.csv

    # Regenerate one item of the last saved output
    python main.py regenerate --ad-group 0 --type headline --variant 0 --item-id item-...

    # Export the last saved output to CSV
    python main.py export --csv ads.csv

campaign.json:
    {
      "campaign": {"topic": "...", "extensions": "...", "callouts": "..."},
      "ad_groups": [{"topic": "...", "keywords": "...", "landingPage": "..."}],
      "config": {"variants": 2, "headlines": 3, "language": "English"}
    }
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

import config
from pipeline.csv_export import export_csv
from pipeline.editing import ItemNotFoundError
from pipeline.llm import get_usage_summary
from pipeline.session import Session, SessionError
from schemas.ad_copy import (
    CALLOUT_MAX_CHARS,
    DESCRIPTION_MAX_CHARS,
    HEADLINE_MAX_CHARS,
    SITELINK_DESCRIPTION_MAX_CHARS,
    SITELINK_TITLE_MAX_CHARS,
    AdGroupInput,
    CampaignInput,
    GeneratedAdGroup,
    GenerationConfig,
    ItemPath,
    ItemType,
    SitelinkContent,
)

console = Console()

OUTPUT_FILE = "ad_copy_output.json"


def setup_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL),
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _api_key(args: argparse.Namespace, provider: str) -> str:
    if args.api_key:
        return args.api_key
    env_keys = {
        "google": config.GOOGLE_API_KEY,
        "openai": config.OPENAI_API_KEY,
        "anthropic": config.ANTHROPIC_API_KEY,
    }
    key = env_keys.get(provider, "")
    if not key:
        console.print(f"[red]No API key — pass --api-key or set {provider.upper()}_API_KEY in .env[/red]")
        sys.exit(1)
    return key


def _open_session(args: argparse.Namespace) -> Session:
    provider = args.provider or config.DEFAULT_PROVIDER
    return Session(_api_key(args, provider), provider=provider, model=args.model)


def _output_path() -> Path:
    return config.OUTPUT_DIR / OUTPUT_FILE


def _save_output(session: Session) -> Path:
    path = _output_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "campaign": session.campaign.model_dump(),
        "ad_groups": [g.model_dump(by_alias=True) for g in session.ad_group_inputs],
        "config": session.gen_config.model_dump(),
        "results": [g.model_dump(by_alias=True) for g in session.results],
    }
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def _load_form(session: Session, data: dict):
    session.update_form(
        campaign=CampaignInput.model_validate(data.get("campaign") or {}),
        ad_group_inputs=[AdGroupInput.model_validate(g) for g in data.get("ad_groups") or [{}]],
        gen_config=GenerationConfig.model_validate(data.get("config") or {}),
    )


def _read_saved() -> dict:
    path = _output_path()
    if not path.exists():
        console.print(f"[red]No saved output at {path} — run generate first[/red]")
        sys.exit(1)
    return json.loads(path.read_text(encoding="utf-8"))


def _saved_results(data: dict) -> list[GeneratedAdGroup]:
    return [GeneratedAdGroup.model_validate(g) for g in data.get("results") or []]


def _load_saved(session: Session):
    data = _read_saved()
    _load_form(session, data)
    session.results = _saved_results(data)


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def _length_cell(text: str, limit: int) -> str:
    color = "red" if len(text) > limit else "green"
    return f"[{color}]{len(text)}/{limit}[/{color}]"


def print_ad_group(index: int, ad_group: GeneratedAdGroup):
    table = Table(title=f"#{index} {ad_group.ad_group_name}", show_lines=False, expand=True)
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Id", style="dim", no_wrap=True)
    table.add_column("Content")
    table.add_column("Length", justify="right", no_wrap=True)

    for v_idx, variant in enumerate(ad_group.variants):
        for h in variant.headlines:
            table.add_row(f"V{v_idx} headline", h.id, h.text, _length_cell(h.text, HEADLINE_MAX_CHARS))
        for d in variant.descriptions:
            table.add_row(f"V{v_idx} description", d.id, d.text, _length_cell(d.text, DESCRIPTION_MAX_CHARS))
    for s in ad_group.sitelinks:
        table.add_row("sitelink", s.id, s.title, _length_cell(s.title, SITELINK_TITLE_MAX_CHARS))
        table.add_row("", "", s.description1, _length_cell(s.description1, SITELINK_DESCRIPTION_MAX_CHARS))
        table.add_row("", "", s.description2, _length_cell(s.description2, SITELINK_DESCRIPTION_MAX_CHARS))
    for c in ad_group.callouts:
        table.add_row("callout", c.id, c.text, _length_cell(c.text, CALLOUT_MAX_CHARS))

    console.print(table)


def print_usage():
    usage = get_usage_summary()
    console.print(
        f"  [dim]LLM calls: {usage['calls']}, tokens: {usage['total_tokens']}, "
        f"est. cost: ${usage['total_cost']:.4f}[/dim]"
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def run_generate(args: argparse.Namespace):
    path = Path(args.input)
    if not path.exists():
        console.print(f"[red]Input file not found: {path}[/red]")
        sys.exit(1)

    session = _open_session(args)
    _load_form(session, json.loads(path.read_text(encoding="utf-8")))

    console.print(
        Panel(
            f"[bold cyan]GENERATE[/bold cyan]\n"
            f"{session.campaign.topic or '(no campaign topic)'} — "
            f"{len(session.ad_group_inputs)} ad group(s), {session.gen_config.language}",
            border_style="bright_blue",
        )
    )

    try:
        results = asyncio.run(session.generate())
    except SessionError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)

    for idx, ad_group in enumerate(results):
        print_ad_group(idx, ad_group)
    if session.error:
        console.print(f"[red]{session.error}[/red]")

    console.print(f"  [green]Output saved:[/green] {_save_output(session)}")
    if args.csv:
        console.print(f"  [green]CSV exported:[/green] {export_csv(results, Path(args.csv))}")
    print_usage()


def run_regenerate(args: argparse.Namespace):
    session = _open_session(args)
    _load_saved(session)

    path = ItemPath(
        ad_group_index=args.ad_group,
        item_type=ItemType(args.type),
        variant_index=args.variant,
        item_id=args.item_id,
    )
    try:
        content = asyncio.run(session.regenerate(path))
    except ItemNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)

    if isinstance(content, SitelinkContent):
        console.print(f"  [green]New sitelink:[/green] {content.title} | {content.description1} | {content.description2}")
    else:
        console.print(f"  [green]New {path.item_type.value}:[/green] {content}")
    print_ad_group(path.ad_group_index, session.results[path.ad_group_index])
    console.print(f"  [green]Output saved:[/green] {_save_output(session)}")
    print_usage()


def run_export(args: argparse.Namespace):
    results = _saved_results(_read_saved())
    try:
        out = export_csv(results, Path(args.csv) if args.csv else None)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)
    console.print(f"  [green]CSV exported:[/green] {out}")


def _add_llm_args(parser: argparse.ArgumentParser):
    parser.add_argument("--api-key", help="Provider API key (default: from .env)")
    parser.add_argument("--provider", choices=["google", "openai", "anthropic"], help="LLM provider")
    parser.add_argument("--model", help="Model name override")


def main():
    parser = argparse.ArgumentParser(
        description="SEM Ad Writer — Google Ads copy generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    gen = subparsers.add_parser("generate", help="Generate ad copy for every ad group in a campaign file")
    gen.add_argument("--input", "-i", required=True, help="Path to campaign JSON file")
    gen.add_argument("--csv", help="Also export the result to this CSV path")
    _add_llm_args(gen)

    regen = subparsers.add_parser("regenerate", help="Regenerate one item of the saved output")
    regen.add_argument("--ad-group", type=int, required=True, help="Ad group index (0-based)")
    regen.add_argument("--type", required=True, choices=[t.value for t in ItemType], help="Item type")
    regen.add_argument("--variant", type=int, help="Variant index (headlines/descriptions)")
    regen.add_argument("--item-id", required=True, help="Item id (shown by generate)")
    _add_llm_args(regen)

    exp = subparsers.add_parser("export", help="Export the saved output to CSV")
    exp.add_argument("--csv", help="CSV path (default: outputs/google_ads_copy_vertical_<date>.csv)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging()

    console.print(
        Panel(
            "[bold]SEM AD WRITER[/bold]\n"
            "Google Ads copy with character-limit checks",
            border_style="bright_magenta",
        )
    )

    if args.command == "generate":
        run_generate(args)
    elif args.command == "regenerate":
        run_regenerate(args)
    elif args.command == "export":
        run_export(args)


if __name__ == "__main__":
    main()
