"""
Command-line interface for the ACME ownership verifier.

This module provides the main CLI entry point with commands for:
- challenge-file: Write the http-01 challenge file for a domain
- challenge-dns-txt: Show the dns-01 TXT record for a domain
- verify-file / verify-dns-txt: Trigger verification and wait for the result
- status: Show the HTTPS verification status of a domain
- config: Configuration management
"""

import argparse
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import httpx
from dotenv import load_dotenv

from . import __version__
from .audit_logger import AuditLogger
from .challenge_formatter import format_dns_txt_challenge, format_http_challenge
from .clock import CancellationToken, Clock, SystemClock
from .config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_DOCS_LINK,
    ApiConfig,
    LoggingConfig,
    PollingConfig,
    SystemConfig,
)
from .decision_engine import OwnershipDecision
from .domain_validator import DomainValidator, parse_site_env
from .enums import ChallengeType, OwnershipStatus, VerificationState
from .exceptions import (
    AcmeOwnershipError,
    NotFoundError,
    VerificationCancelledError,
    VerificationFailedError,
)
from .i18n import SUPPORTED_LANGUAGES, get_message
from .models import DomainStatus, FailureReport
from .poller import VerificationPoller
from .registry import DomainRegistry
from .status_client import StatusClient
from .verification_trigger import VerificationTrigger


PROG = "acme-ownership"
DEFAULT_CONFIG_PATH = Path.home() / ".acme_ownership" / "config.json"
EXIT_CANCELLED = 130

ENV_BASE_URL = "ACME_API_BASE_URL"
ENV_TOKEN = "ACME_API_TOKEN"
ENV_CLIENT_ID = "ACME_CLIENT_ID"
ENV_LANGUAGE = "ACME_LANGUAGE"


@dataclass
class CommandContext:
    """Everything a command handler needs besides its parsed arguments."""

    config: SystemConfig
    logger: AuditLogger
    transport: Optional[httpx.BaseTransport] = None
    clock: Optional[Clock] = None

    @property
    def language(self) -> str:
        return self.config.language


def create_default_config(language: str = "en") -> SystemConfig:
    """
    Create a default system configuration.

    Args:
        language: Output language ('en' or 'de')

    Returns:
        SystemConfig with default settings
    """
    return SystemConfig(
        api=ApiConfig(),
        polling=PollingConfig(),
        logging=LoggingConfig(),
        language=language,
    )


def load_config_from_file(config_path: Path) -> Optional[SystemConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        api_data = data.get("api", {})
        api = ApiConfig(
            base_url=api_data.get("base_url", DEFAULT_API_BASE_URL),
            token=api_data.get("token"),
            client_id=api_data.get("client_id", "acme-ownership"),
            timeout_seconds=float(api_data.get("timeout_seconds", 30.0)),
            docs_link=api_data.get("docs_link", DEFAULT_DOCS_LINK),
        )

        polling_data = data.get("polling", {})
        deadline = polling_data.get("deadline_seconds")
        polling = PollingConfig(
            interval_seconds=float(polling_data.get("interval_seconds", 10.0)),
            max_attempts=int(polling_data.get("max_attempts", 15)),
            max_fetch_failures=int(polling_data.get("max_fetch_failures", 3)),
            max_missing_results=int(polling_data.get("max_missing_results", 10)),
            deadline_seconds=float(deadline) if deadline is not None else None,
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "warn"),
            output_format=logging_data.get("output_format", "text"),
        )

        language = data.get("language", "en")
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")

        return SystemConfig(
            api=api,
            polling=polling,
            logging=logging_config,
            language=language,
        )

    except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None


def save_config_to_file(config: SystemConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    The API token is never written; it is read from the environment.

    Args:
        config: SystemConfig to save
        config_path: Path to save the configuration

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "api": {
                "base_url": config.api.base_url,
                "client_id": config.api.client_id,
                "timeout_seconds": config.api.timeout_seconds,
                "docs_link": config.api.docs_link,
            },
            "polling": {
                "interval_seconds": config.polling.interval_seconds,
                "max_attempts": config.polling.max_attempts,
                "max_fetch_failures": config.polling.max_fetch_failures,
                "max_missing_results": config.polling.max_missing_results,
                "deadline_seconds": config.polling.deadline_seconds,
            },
            "logging": {
                "level": config.logging.level,
                "output_format": config.logging.output_format,
            },
            "language": config.language,
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def apply_env_overrides(
    config: SystemConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> SystemConfig:
    """Override API settings and language from ACME_* environment variables."""
    env = os.environ if environ is None else environ

    if env.get(ENV_BASE_URL):
        config.api.base_url = env[ENV_BASE_URL].strip()
    if env.get(ENV_TOKEN):
        config.api.token = env[ENV_TOKEN].strip()
    if env.get(ENV_CLIENT_ID):
        config.api.client_id = env[ENV_CLIENT_ID].strip()
    language = (env.get(ENV_LANGUAGE) or "").strip().lower()
    if language in SUPPORTED_LANGUAGES:
        config.language = language

    return config


def resolve_config(args: argparse.Namespace) -> Optional[SystemConfig]:
    """Load the configuration named on the command line, or the default one."""
    config = None
    config_arg = getattr(args, "config", None)
    if config_arg:
        config = load_config_from_file(Path(config_arg))
        if config is None:
            return None
    elif DEFAULT_CONFIG_PATH.exists():
        config = load_config_from_file(DEFAULT_CONFIG_PATH)

    if config is None:
        config = create_default_config()

    config = apply_env_overrides(config)

    language = getattr(args, "language", None)
    if language:
        config.language = language

    if getattr(args, "interval", None) is not None:
        config.polling.interval_seconds = args.interval
    if getattr(args, "max_attempts", None) is not None:
        config.polling.max_attempts = args.max_attempts
    if getattr(args, "timeout", None) is not None:
        config.polling.deadline_seconds = args.timeout

    return config


def create_logger(config: SystemConfig, verbose: bool = False) -> AuditLogger:
    level = "debug" if verbose else config.logging.level
    return AuditLogger.from_level_name(level, output_format=config.logging.output_format)


def _open_registry(site_env: str, ctx: CommandContext) -> DomainRegistry:
    site, env = parse_site_env(site_env)
    return DomainRegistry.from_config(
        ctx.config.api,
        site,
        env,
        logger=ctx.logger,
        transport=ctx.transport,
    )


def _print_nothing_to_do(status: DomainStatus, ctx: CommandContext) -> None:
    if status.ownership and status.ownership.status == OwnershipStatus.NOT_REQUIRED:
        print(get_message("ownership.not_required", ctx.language, domain=status.domain))
    else:
        print(get_message("ownership.completed", ctx.language, domain=status.domain))


def cmd_challenge_file(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Handle the 'challenge-file' command."""
    domain = DomainValidator().require_canonical(args.domain)

    with _open_registry(args.site_env, ctx) as registry:
        status = StatusClient(logger=ctx.logger).fetch(registry, domain)

    challenge = OwnershipDecision().required_challenge(status, ChallengeType.HTTP_01)
    if challenge is None:
        _print_nothing_to_do(status, ctx)
        return 0

    artifact = format_http_challenge(challenge)
    if Path(artifact.filename).name != artifact.filename:
        print(get_message("cli.error", ctx.language, message=(
            f"Refusing to write challenge token {artifact.filename!r}"
        )), file=sys.stderr)
        return 1

    target = Path(args.output_dir) / artifact.filename
    try:
        target.write_text(artifact.contents, encoding="utf-8")
    except OSError as e:
        print(get_message(
            "challenge.file_write_failed", ctx.language, filename=target, error=e,
        ), file=sys.stderr)
        return 1

    print(get_message("challenge.file_written", ctx.language, filename=target))
    print(get_message("challenge.file_instructions", ctx.language))
    print(artifact.url_for(domain))
    print(get_message(
        "challenge.next_step", ctx.language,
        command=f"{PROG} verify-file {args.site_env} {domain}",
    ))
    return 0


def cmd_challenge_dns_txt(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Handle the 'challenge-dns-txt' command."""
    domain = DomainValidator().require_canonical(args.domain)

    with _open_registry(args.site_env, ctx) as registry:
        status = StatusClient(logger=ctx.logger).fetch(registry, domain)

    challenge = OwnershipDecision().required_challenge(status, ChallengeType.DNS_01)
    if challenge is None:
        _print_nothing_to_do(status, ctx)
        return 0

    record = format_dns_txt_challenge(domain, challenge)

    if args.format == "json":
        print(json.dumps({record.record_line: record.record_fields}, indent=2))
    elif args.format == "table":
        width = max(len(name) for name in record.record_fields)
        for name, value in record.record_fields.items():
            print(f"{name.ljust(width)}  {value}")
    else:
        print(get_message("challenge.dns_instructions", ctx.language))
        print(record.record_line)
        print()
        print(get_message(
            "challenge.next_step", ctx.language,
            command=f"{PROG} verify-dns-txt {args.site_env} {domain}",
        ))
    return 0


def render_failure_report(
    report: FailureReport,
    language: str,
    site_env: str,
) -> tuple[list[str], list[str]]:
    """
    Turn a failure report into printable lines.

    Returns:
        Tuple of (notice lines, warning lines)
    """
    notices = []
    warnings = []

    if report.state == VerificationState.TIMED_OUT:
        notices.append(get_message("verify.timed_out", language, attempts=report.attempts))

    problem = report.problem
    if problem is not None:
        for text in (problem.title, problem.detail, problem.action_item):
            if text:
                notices.append(text)
        if problem.has_raw_result:
            raw = get_message("verify.raw_result", language)
            for text in (problem.problem_type, problem.raw_detail):
                if text:
                    raw += "\n" + text
            notices.append("")
            notices.append(raw)
    else:
        notices.append(get_message("verify.double_check", language))

    notices.append(get_message("verify.see_docs", language, link=report.docs_link))
    if report.support_reference:
        notices.append(get_message(
            "verify.contact_support_reference", language, reference=report.support_reference,
        ))
    else:
        notices.append(get_message("verify.contact_support", language))

    if report.unavailable_message:
        warnings.append(report.unavailable_message)

    change = report.challenge_change
    if change is not None:
        warnings.append(get_message("verify.challenge_changed", language))
        if change.challenge_type == ChallengeType.DNS_01 and change.dns_record is not None:
            warnings.append(
                get_message("verify.update_dns", language) + "\n" + change.dns_record.record_line
            )
        elif change.challenge_type == ChallengeType.HTTP_01:
            warnings.append(get_message(
                "verify.regenerate_file", language,
                command=f"{PROG} challenge-file {site_env} {report.domain}",
            ))

    return notices, warnings


def run_verification(
    args: argparse.Namespace,
    ctx: CommandContext,
    challenge_type: ChallengeType,
) -> int:
    """Shared body of the verify-file and verify-dns-txt commands."""
    domain = DomainValidator().require_canonical(args.domain)
    language = ctx.language

    poller = VerificationPoller(
        status_client=StatusClient(logger=ctx.logger),
        trigger=VerificationTrigger(client_id=ctx.config.api.client_id, logger=ctx.logger),
        config=ctx.config.polling,
        clock=ctx.clock or SystemClock(),
        docs_link=ctx.config.api.docs_link,
        logger=ctx.logger,
    )
    token = CancellationToken()

    print(get_message(
        "verify.started", language, domain=domain, challenge_type=challenge_type.value,
    ))

    try:
        with _open_registry(args.site_env, ctx) as registry:
            outcome = poller.verify(registry, domain, challenge_type, cancel_token=token)
    except KeyboardInterrupt:
        print(get_message("verify.cancelled", language), file=sys.stderr)
        return EXIT_CANCELLED
    except VerificationCancelledError:
        print(get_message("verify.cancelled", language), file=sys.stderr)
        return EXIT_CANCELLED
    except VerificationFailedError as e:
        if e.report is None:
            raise
        notices, warnings = render_failure_report(e.report, language, args.site_env)
        for line in notices:
            print(line)
        for line in warnings:
            print(line, file=sys.stderr)
        print(get_message("verify.failed", language), file=sys.stderr)
        return 1

    if outcome.noop:
        if outcome.ownership_status == OwnershipStatus.NOT_REQUIRED:
            print(get_message("ownership.not_required", language, domain=domain))
        else:
            print(get_message("ownership.completed", language, domain=domain))
        return 0

    if not outcome.triggered and outcome.attempts == 0:
        print(get_message("verify.already_complete", language, domain=domain))
        return 0

    print(get_message("verify.success", language))
    print(get_message("verify.deploy_notice", language))

    if args.verbose:
        print(f"  Status checks: {outcome.attempts}")
        print(f"  Failed status checks: {outcome.fetch_failures}")
    return 0


def cmd_verify_file(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Handle the 'verify-file' command."""
    return run_verification(args, ctx, ChallengeType.HTTP_01)


def cmd_verify_dns_txt(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Handle the 'verify-dns-txt' command."""
    return run_verification(args, ctx, ChallengeType.DNS_01)


def cmd_status(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Handle the 'status' command."""
    domain = DomainValidator().require_canonical(args.domain)

    with _open_registry(args.site_env, ctx) as registry:
        status = StatusClient(logger=ctx.logger).fetch(registry, domain)

    decision = OwnershipDecision()
    print(get_message(
        decision.summary_key(status),
        ctx.language,
        domain=domain,
        status=decision.status_label(status),
    ))
    if status.ownership and status.ownership.message:
        print(status.ownership.message)
    return 0


def cmd_config(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH
    language = ctx.language

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(get_message("config.not_found", language, path=config_path))
            print(get_message("config.init_hint", language))
            return 1

        print(get_message("config.header", language, path=config_path))
        print(f"  API base URL: {config.api.base_url}")
        print(f"  Client ID: {config.api.client_id}")
        print(f"  Poll interval: {config.polling.interval_seconds}s")
        print(f"  Max attempts: {config.polling.max_attempts}")
        print(f"  Log level: {config.logging.level}")
        print(f"  Language: {config.language}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(get_message("config.exists", language, path=config_path))
            print(get_message("config.force_hint", language))
            return 1

        if save_config_to_file(create_default_config(language=language), config_path):
            print(get_message("config.created", language, path=config_path))
            return 0
        return 1

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(get_message("cli.config_load_failed", language, path=config_path), file=sys.stderr)
            return 1

        try:
            DomainRegistry.from_config(config.api, "site", "env")
            AuditLogger.from_level_name(config.logging.level, config.logging.output_format)
        except (AcmeOwnershipError, ValueError) as e:
            message = e.message if isinstance(e, AcmeOwnershipError) else str(e)
            print(get_message("cli.error", language, message=message), file=sys.stderr)
            return 1

        print(get_message("config.valid", language, path=config_path))
        return 0

    return 1


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--language", "-l",
        choices=sorted(SUPPORTED_LANGUAGES),
        default=None,
        help="Output language (default: from configuration, en)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )


def _add_site_domain_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "site_env",
        help="Site & environment in the format site-name.env",
    )
    parser.add_argument(
        "domain",
        help="Domain name (e.g., example.com)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="ACME domain ownership verification for platform-hosted domains",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'challenge-file' command
    file_parser = subparsers.add_parser(
        "challenge-file",
        help="Write the http-01 challenge file and print how to serve it",
    )
    _add_site_domain_arguments(file_parser)
    file_parser.add_argument(
        "--output-dir", "-o",
        default=".",
        help="Directory to write the challenge file to (default: current directory)",
    )
    _add_common_arguments(file_parser)
    file_parser.set_defaults(func=cmd_challenge_file)

    # 'challenge-dns-txt' command
    dns_parser = subparsers.add_parser(
        "challenge-dns-txt",
        help="Show the dns-01 TXT record to create",
    )
    _add_site_domain_arguments(dns_parser)
    dns_parser.add_argument(
        "--format", "-f",
        choices=["list", "table", "json"],
        default="list",
        help="Output format (default: list)",
    )
    _add_common_arguments(dns_parser)
    dns_parser.set_defaults(func=cmd_challenge_dns_txt)

    # 'verify-file' and 'verify-dns-txt' commands
    for name, handler, help_text in (
        ("verify-file", cmd_verify_file,
         "Verify ownership by having the platform fetch the http-01 file"),
        ("verify-dns-txt", cmd_verify_dns_txt,
         "Verify ownership by having the platform query the dns-01 TXT record"),
    ):
        verify_parser = subparsers.add_parser(name, help=help_text)
        _add_site_domain_arguments(verify_parser)
        verify_parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds to wait between status checks (default: 10)",
        )
        verify_parser.add_argument(
            "--max-attempts",
            type=int,
            default=None,
            help="Maximum number of status checks (default: 15)",
        )
        verify_parser.add_argument(
            "--timeout",
            type=float,
            default=None,
            help="Stop polling after this many seconds",
        )
        _add_common_arguments(verify_parser)
        verify_parser.set_defaults(func=handler)

    # 'status' command
    status_parser = subparsers.add_parser(
        "status",
        help="Show the HTTPS verification status of a domain",
    )
    _add_site_domain_arguments(status_parser)
    _add_common_arguments(status_parser)
    status_parser.set_defaults(func=cmd_status)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.add_argument(
        "--language", "-l",
        choices=sorted(SUPPORTED_LANGUAGES),
        default=None,
        help="Language of messages and of a new configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(
    argv: Optional[list[str]] = None,
    transport: Optional[httpx.BaseTransport] = None,
    clock: Optional[Clock] = None,
) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        transport: Optional httpx transport for all API requests
        clock: Optional clock for the verification poller

    Returns:
        Exit code
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "config":
        config = create_default_config()
        apply_env_overrides(config)
        if args.language:
            config.language = args.language
    else:
        config = resolve_config(args)
        if config is None:
            print(get_message("cli.config_load_failed", path=args.config), file=sys.stderr)
            return 1

    try:
        logger = create_logger(config, getattr(args, "verbose", False))
    except ValueError as e:
        print(get_message("cli.error", config.language, message=str(e)), file=sys.stderr)
        return 1

    ctx = CommandContext(config=config, logger=logger, transport=transport, clock=clock)

    try:
        return args.func(args, ctx)
    except NotFoundError as e:
        print(get_message(
            "ownership.domain_missing", ctx.language,
            domain=e.details.get("domain", getattr(args, "domain", "")),
            site_env=getattr(args, "site_env", ""),
        ), file=sys.stderr)
        print(get_message("cli.error", ctx.language, message=e.message), file=sys.stderr)
        return 1
    except AcmeOwnershipError as e:
        print(get_message("cli.error", ctx.language, message=e.message), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
