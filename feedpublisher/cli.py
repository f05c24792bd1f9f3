"""Command line interface for feedpublisher package."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.logging import RichHandler

from . import __version__
from .cli_progress import render_configuration_summary, render_publish_report
from .models import PublishConfig, PushOptions
from .orchestrator import PublishOrchestrator


DEFAULT_MAX_CLIENTS = 8
DEFAULT_UPLOAD_TIMEOUT_MINUTES = 5


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug, --log-level or LOG_LEVEL is
    provided. Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    env_level = os.getenv("LOG_LEVEL")
    if silent or (not debug and not log_level and not env_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, (log_level or env_level or "INFO").upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _env_number(name: str, default: float, cast=int):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise CLIError(f"{name} must be a number, got {raw!r}") from exc


def _build_config(args: argparse.Namespace) -> PublishConfig:
    """Merge flags over environment into an immutable PublishConfig."""
    feed_url = args.feed_url or os.getenv("FEED_URL")
    access_key = args.access_key or os.getenv("FEED_ACCESS_KEY")

    missing = [
        label
        for label, present in (
            ("--feed-url (or FEED_URL)", feed_url),
            ("--access-key (or FEED_ACCESS_KEY)", access_key),
        )
        if not present
    ]
    if missing:
        raise CLIError(f"missing required setting(s): {', '.join(missing)}")

    max_clients = args.max_clients
    if max_clients is None:
        max_clients = _env_number("FEED_MAX_CLIENTS", DEFAULT_MAX_CLIENTS)
    if max_clients < 1:
        raise CLIError(f"max clients must be at least 1, got {max_clients}")

    timeout = args.upload_timeout
    if timeout is None:
        timeout = _env_number("FEED_UPLOAD_TIMEOUT_MINUTES", DEFAULT_UPLOAD_TIMEOUT_MINUTES, float)
    if timeout <= 0:
        raise CLIError(f"upload timeout must be positive, got {timeout}")

    return PublishConfig(
        feed_url=feed_url,
        access_key=access_key,
        max_clients=max_clients,
        upload_timeout_minutes=timeout,
    )


async def _run_publish(
    config: PublishConfig,
    options: PushOptions,
    manifest: Path,
    package_base_path: Optional[str],
    blob_base_path: Optional[str],
) -> int:
    async with PublishOrchestrator(config, options) as publisher:
        report = await publisher.publish_manifest(
            manifest,
            package_base_path=package_base_path,
            blob_base_path=blob_base_path,
        )

    render_publish_report(report)
    return 0 if report.success else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feed-publish",
        description="Publish packages and blobs listed in a build manifest to a feed.",
    )
    parser.add_argument(
        "-m",
        "--manifest",
        type=Path,
        required=True,
        help="Path to the asset manifest (XML build manifest or .json)",
    )
    parser.add_argument(
        "--package-base-path",
        default=None,
        help="Folder containing {id}.{version}.nupkg package files",
    )
    parser.add_argument(
        "--blob-base-path",
        default=None,
        help="Folder containing blob assets, addressed by blob id",
    )
    parser.add_argument(
        "--feed-url",
        default=None,
        help="Feed root URL (default from FEED_URL)",
    )
    parser.add_argument(
        "--access-key",
        default=None,
        help="Feed access credential (default from FEED_ACCESS_KEY)",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace items that already exist in the feed",
    )
    parser.add_argument(
        "--pass-if-identical",
        action="store_true",
        help=(
            "When an item exists and overwrite is off, pass if it is byte-for-byte "
            "identical to the local file, fail otherwise"
        ),
    )
    parser.add_argument(
        "--max-clients",
        type=int,
        default=None,
        help=f"Maximum concurrent uploads (default from FEED_MAX_CLIENTS or {DEFAULT_MAX_CLIENTS})",
    )
    parser.add_argument(
        "--upload-timeout",
        type=float,
        default=None,
        help=(
            "Per-item timeout in minutes "
            f"(default from FEED_UPLOAD_TIMEOUT_MINUTES or {DEFAULT_UPLOAD_TIMEOUT_MINUTES})"
        ),
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print results")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"feed-publish {__version__}",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    try:
        config = _build_config(args)
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    options = PushOptions(
        allow_overwrite=args.overwrite,
        pass_if_existing_item_identical=args.pass_if_identical,
    )
    manifest = Path(args.manifest).expanduser()

    if not args.silent:
        render_configuration_summary(
            {
                "Manifest": str(manifest),
                "Package Base": args.package_base_path or "-",
                "Blob Base": args.blob_base_path or "-",
                "Feed": config.feed_url,
                "Overwrite": "yes" if options.allow_overwrite else "no",
                "Pass If Identical": "yes" if options.pass_if_existing_item_identical else "no",
                "Max Clients": config.max_clients,
                "Upload Timeout": f"{config.upload_timeout_minutes:g} min",
                "Env File": str(used_env_file) if used_env_file else "-",
                "Logging": effective_log_mode,
            }
        )

    try:
        return asyncio.run(
            _run_publish(
                config,
                options,
                manifest,
                package_base_path=args.package_base_path,
                blob_base_path=args.blob_base_path,
            )
        )
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
