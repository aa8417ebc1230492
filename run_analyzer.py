# run_analyzer.py
import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Import RichHandler here for centralized logging
from rich.logging import RichHandler
from rich.console import Console # Useful for rich.print and general console operations

from product_analyzer import config
from product_analyzer.delegates import FileManagerDelegate
from product_analyzer.exceptions import ProductAnalyzerError
from product_analyzer.main import main as run_analysis
from product_analyzer.models import TelemetryConfig
from product_analyzer.utils.page_snapshot import capture_snapshot
from product_analyzer.utils.render import render_result


def configure_logging(verbose: bool) -> None:
    # --- Centralized Logging Configuration ---
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(levelname)-8s - %(name)-40s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    log_file_path = Path("analyzer.log")
    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG) # Log all debug messages to file
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    rich_handler = RichHandler(
        level=logging.DEBUG if verbose else logging.WARNING,
        console=Console(stderr=True),
        show_time=True,
        show_level=True,
        show_path=False,
    )
    root_logger.addHandler(rich_handler)

    # httpx logs every request at INFO; keep it out of the console unless asked for.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Analyze an amazon.in product page with Gemini.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument(
        'url',
        nargs='?',
        help="Product page URL, e.g. https://www.amazon.in/dp/B0XXXXXXXX"
    )
    parser.add_argument(
        '--html-file',
        type=Path,
        help="Analyze a saved page instead of loading it in a browser.\n"
             "The URL is taken from the positional argument or from the snapshot itself."
    )
    parser.add_argument(
        '--snapshot',
        action='store_true',
        help="Save the page HTML under <data-dir>/snapshots and exit."
    )
    parser.add_argument(
        '--data-dir',
        type=Path,
        default=config.DATA_PATH,
        help="Where settings, snapshots and analyses are stored (default: %(default)s)."
    )
    parser.add_argument('--json', action='store_true', help="Print the analysis as JSON.")
    parser.add_argument('-v', '--verbose', action='store_true', help="Show debug logging on the console.")

    settings = parser.add_argument_group("settings")
    settings.add_argument(
        '--save-settings',
        action='store_true',
        help="Store the credentials below and exit.\n"
             "Example: python run_analyzer.py --save-settings --api-key AIza..."
    )
    settings.add_argument('--api-key', default="", help="Gemini API key.")
    settings.add_argument('--langfuse-secret-key', default="", help="Langfuse secret key (optional).")
    settings.add_argument('--langfuse-public-key', default="", help="Langfuse public key (optional).")
    settings.add_argument('--langfuse-host', default="", help="Langfuse host, e.g. https://cloud.langfuse.com (optional).")
    return parser


def save_settings(args, console: Console) -> int:
    if not args.api_key.strip():
        console.print("[red]Please enter a valid API key (--api-key).[/red]")
        return 2
    telemetry = TelemetryConfig(
        secret_key=args.langfuse_secret_key.strip(),
        public_key=args.langfuse_public_key.strip(),
        host=args.langfuse_host.strip(),
    )
    path = FileManagerDelegate(base_path=args.data_dir).save_settings(args.api_key, telemetry)
    console.print(f"Settings saved to [bold]{path}[/bold].")
    if telemetry.is_complete:
        console.print("Langfuse tracking is enabled.")
    return 0


if __name__ == "__main__":
    args = build_parser().parse_args()
    configure_logging(args.verbose)
    console = Console()

    if args.save_settings:
        sys.exit(save_settings(args, console))

    if not args.url and not args.html_file:
        console.print("[red]Give a product URL or --html-file.[/red]")
        sys.exit(2)

    def show(outcome):
        if args.json:
            console.print_json(json.dumps(outcome.result.to_json_dict(), ensure_ascii=False))
        else:
            render_result(outcome.result, console)

    logging.info("=" * 60)
    logging.info("Product Analyzer starting for %s", args.url or args.html_file)
    logging.info("=" * 60)

    exit_code = 0
    try:
        if args.snapshot:
            path = asyncio.run(capture_snapshot(args.url, FileManagerDelegate(base_path=args.data_dir)))
            console.print(f"Snapshot saved to [bold]{path}[/bold].")
        else:
            asyncio.run(run_analysis(url=args.url, html_file=args.html_file, data_path=args.data_dir, on_result=show))
    except ProductAnalyzerError as e:
        logging.debug("Analysis failed", exc_info=True)
        console.print(f"[bold red]Error:[/bold red] {e}")
        exit_code = 1
    except KeyboardInterrupt:
        logging.warning("Analysis interrupted by user.")
        exit_code = 130
    except Exception as e:
        logging.critical("An unexpected error occurred: %s", e, exc_info=True)
        console.print(f"[bold red]Failed to analyze product:[/bold red] {e}")
        exit_code = 1
    finally:
        logging.info("=" * 60)
        logging.info("Analyzer execution finished.")
    sys.exit(exit_code)
