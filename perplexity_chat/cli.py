"""Terminal chat client"""

import argparse
from typing import List, Optional

from rich.console import Console
from rich.markdown import Markdown as RichMarkdown
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.rule import Rule
from rich.style import Style
from rich.text import Text

from .clients.perplexity_client import PerplexityClient
from .config import load_config, setup_logging
from .models.api_models import ApiSettings, SUPPORTED_MODELS
from .services.chat_session import ChatSession
from .services.key_store import FileKeyStore
from .services.query_builder import StructuredQueryBuilder
from .services.response_renderer import (
    FindingList,
    Heading,
    LabeledText,
    LinkList,
    Markdown,
    PlainText,
    RenderedMessage,
    render_message,
)
from .utils.web_utils import is_web_url

_HEADING_STYLES = {1: "bold magenta", 2: "bold cyan", 3: "bold"}


def print_rendered(console: Console, rendered: RenderedMessage) -> None:
    """Print a display tree with rich"""
    for block in rendered.blocks:
        if isinstance(block, PlainText):
            console.print(block.text, markup=False)
        elif isinstance(block, Heading):
            console.print()
            console.print(block.text, style=_HEADING_STYLES.get(block.level, "bold"), markup=False)
        elif isinstance(block, Markdown):
            console.print(RichMarkdown(block.source))
        elif isinstance(block, LabeledText):
            console.print(f"\n[bold]{block.label}[/bold]")
            console.print(block.text, markup=False)
        elif isinstance(block, FindingList):
            console.print(f"\n[bold]{block.label}[/bold]")
            for item in block.items:
                console.print(f"{item.number}. {item.point}", style="bold", markup=False)
                console.print(item.evidence, markup=False)
                console.print(f"Citations: {item.citations}", style="dim", markup=False)
        elif isinstance(block, LinkList):
            if not block.links:
                continue
            console.print(f"\n[bold]{block.label}[/bold]")
            for link in block.links:
                style = Style(link=link.url) if is_web_url(link.url) else Style()
                console.print(Text(link.label, style=style))
        else:
            raise TypeError(f"Unknown block type: {type(block).__name__}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ask Perplexity for structured, cited articles")
    parser.add_argument("--model", choices=SUPPORTED_MODELS, help="Model to use")
    parser.add_argument("--temperature", type=float, help="Sampling temperature (0-2)")
    parser.add_argument("--api-key", help="Store this API key before starting")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    console = Console()

    try:
        config = load_config()
    except ValueError as e:
        console.print(f"\n[red]Configuration Error: {str(e)}[/red]")
        return 1
    setup_logging(config.log_level)

    settings = ApiSettings(
        model=args.model or config.model,
        temperature=config.temperature if args.temperature is None else args.temperature,
    )
    try:
        settings.validate()
    except ValueError as e:
        console.print(f"\n[red]Configuration Error: {str(e)}[/red]")
        return 1

    key_store = FileKeyStore(config.key_store_path)
    if args.api_key:
        key_store.save(args.api_key)
    api_key = key_store.load() or config.api_key or ""
    if not api_key:
        console.print("[red]No API key found.[/red]")
        console.print("[yellow]Set PERPLEXITY_API_KEY in your .env file or pass --api-key[/yellow]")
        return 1

    client = PerplexityClient(api_key, base_url=config.base_url, timeout=config.timeout)
    session = ChatSession(StructuredQueryBuilder(client), key_store, settings)
    session.api_key = api_key

    console.print("\n[bold blue]Perplexity Chat[/bold blue]")
    console.print(f"Model: {settings.model}. Press Ctrl+C to exit.\n")

    while True:
        try:
            question = console.input("[bold green]You:[/bold green] ").strip()
            if not question:
                continue
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True
            ) as progress:
                progress.add_task("[cyan]Waiting for answer...", total=None)
                reply = session.submit(question)

            console.print(Rule())
            print_rendered(console, render_message(reply))
            if session.related_questions:
                console.print("\n[bold]Related Questions:[/bold]")
                for index, related in enumerate(session.related_questions, start=1):
                    console.print(f"  {index}. {related}", markup=False)
            console.print(Rule())
        except (KeyboardInterrupt, EOFError):
            console.print("\n\n[yellow]Exiting...[/yellow]")
            return 0


if __name__ == "__main__":
    raise SystemExit(main())
