"""CLI entrypoints for perflens commands."""

from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path
from typing import Any

from .audit import AuditContext, AuditContextError, load_audit_context
from .config import ConfigError, PerflensConfig, load_config, override_limits
from .llm.credentials import CredentialStore, mask_key
from .llm.runner import PROVIDERS, LLMRunner
from .logging import configure_logging, get_logger
from .orchestrator import Orchestrator
from .report import FORMATS, write_report
from .scanner import TargetDirectoryError
from .scheduling import CancellationToken


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity (shows skipped files and batch details).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="perflens",
        description="Find performance issues in a frontend code base with an LLM code review.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan",
        help="Analyse a project directory and write a performance report.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    scan_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Directory to analyse (defaults to the configured target or the current directory).",
    )
    scan_parser.add_argument("--config", help="Path to a .perflens.yml file or the directory holding it.")
    scan_parser.add_argument("--max-files", type=int, help="Maximum number of files to analyse.")
    scan_parser.add_argument("--batch-size", type=int, help="Maximum number of files per oracle request.")
    scan_parser.add_argument("--max-size", type=int, help="Maximum file size in KB.")
    scan_parser.add_argument("--batch-delay", type=int, help="Delay between batches in milliseconds.")
    scan_parser.add_argument("--token-budget", type=int, help="Maximum bytes of file content per batch.")
    scan_parser.add_argument(
        "--audit-context",
        help="JSON file with runtime audit findings (Lighthouse result or {metrics, analysis}).",
    )
    scan_parser.add_argument("--provider", help="Oracle provider: openai, anthropic, or gemini.")
    scan_parser.add_argument("--model", help="Model name to request from the provider.")
    scan_parser.add_argument("--output", help="File to write the report to.")
    scan_parser.add_argument("--format", choices=FORMATS, help="Report format.")
    scan_parser.add_argument("--log-file", help="Also write debug logs for the run to this file.")

    config_parser = subparsers.add_parser("config", help="Manage saved perflens settings.")
    _add_verbose_option(config_parser, suppress_default=True)
    config_subparsers = config_parser.add_subparsers(dest="config_command", required=True)

    set_key_parser = config_subparsers.add_parser("set-key", help="Save an API key for a provider.")
    set_key_parser.add_argument("key", help="API key to store.")
    set_key_parser.add_argument(
        "--provider",
        choices=sorted(PROVIDERS),
        default=LLMRunner.DEFAULT_PROVIDER,
        help="Provider the key belongs to.",
    )

    get_key_parser = config_subparsers.add_parser("get-key", help="Show the saved API key, masked.")
    get_key_parser.add_argument(
        "--provider",
        choices=sorted(PROVIDERS),
        default=LLMRunner.DEFAULT_PROVIDER,
        help="Provider whose key to show.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for perflens commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = getattr(args, "log_file", None)
    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(log_file).expanduser() if log_file else None,
    )

    if args.command == "scan":
        _run_scan(parser, args)
    elif args.command == "config":
        _run_config(parser, args)
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_scan(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    logger = get_logger("cli")
    try:
        config = _load_scan_config(args)
        limits = override_limits(
            config.analysis.limits,
            max_files=args.max_files,
            batch_size=args.batch_size,
            max_file_size=args.max_size * 1024 if args.max_size is not None else None,
            batch_delay=args.batch_delay / 1000.0 if args.batch_delay is not None else None,
            token_budget=args.token_budget,
        )
        audit_context = _load_audit(args, config)
        runner = LLMRunner.from_config(config.llm, provider=args.provider, model=args.model)
    except (ConfigError, AuditContextError, ValueError) as exc:
        parser.exit(1, f"{exc}\n")

    if args.format:
        config.output.format = args.format
    target = Path(args.path).expanduser() if args.path else config.target_path

    token = CancellationToken()
    previous_handler = signal.getsignal(signal.SIGINT)

    def _cancel(signum: int, frame: Any) -> None:
        logger.warning("Interrupt received; finishing with partial results")
        token.cancel()

    signal.signal(signal.SIGINT, _cancel)
    try:
        with Orchestrator(runner) as orchestrator:
            result = orchestrator.analyze(
                target,
                limits,
                config.analysis.include,
                config.analysis.ignore,
                audit_context,
                cancel=token,
            )
    except TargetDirectoryError as exc:
        parser.exit(1, f"{exc}\n")
    except Exception as exc:  # pragma: no cover
        parser.exit(1, f"perflens scan failed: {exc}\nRun with --verbose for more details.\n")
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    destination = Path(args.output).expanduser() if args.output else None
    report_path = write_report(
        result,
        config.output,
        base_dir=Path.cwd(),
        destination=destination,
        limits=limits,
        audit_context=audit_context,
    )
    print(
        f"Found {len(result.critical)} critical, {len(result.warnings)} warning(s), "
        f"{len(result.suggestions)} suggestion(s)"
    )
    print(f"Report written to {_relativize(report_path)}")
    if result.cancelled:
        parser.exit(130, "Analysis cancelled; report contains partial results.\n")


def _run_config(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    store = CredentialStore()
    provider = args.provider
    try:
        if args.config_command == "set-key":
            path = store.set(provider, args.key)
            print(f"{provider.upper()} API key saved to {path}")
            return
        key = store.get(provider)
    except (ConfigError, ValueError, OSError) as exc:
        parser.exit(1, f"{exc}\n")

    if key:
        print(f"Current {provider.upper()} API key: {mask_key(key)}")
    else:
        print(f"No API key configured for {provider.upper()}")
        print(f"To set an API key, use:\nperflens config set-key YOUR_API_KEY --provider {provider}")


def _load_scan_config(args: argparse.Namespace) -> PerflensConfig:
    if args.config:
        return load_config(Path(args.config))
    if args.path:
        return load_config(Path(args.path))
    return load_config(Path.cwd())


def _load_audit(args: argparse.Namespace, config: PerflensConfig) -> AuditContext | None:
    if args.audit_context:
        return load_audit_context(Path(args.audit_context).expanduser())
    if config.audit_context is not None:
        return load_audit_context(config.audit_context)
    return None


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
