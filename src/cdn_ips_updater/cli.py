"""Command-line interface for the CDN IP updater.

Usage:
    cdn-ips-updater [COMMAND ...] [OPTIONS]

Commands select what to do (all, cloudflare, gcore, reload, help); options
override the configured directory, file names and service list.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, NoReturn

from pydantic import ValidationError

from cdn_ips_updater.exceptions import ConfigurationError, UpdaterError
from cdn_ips_updater.settings import (
    DEFAULT_LOG_TAG,
    UpdaterSettings,
    get_settings,
    load_config,
    parse_service_list,
)
from cdn_ips_updater.updater import SELECTORS, SEPARATOR, CDNIPUpdater, resolve_intents
from cdn_ips_updater.utils.logging import get_logger, log_success, setup_logging

logger = get_logger("cli")

PROG = "cdn-ips-updater"

DESCRIPTION = """\
Update the IP address lists of CDN providers (CloudFlare, Gcore) and reload
the services that use them (HAProxy, fail2ban, ...).

commands:
  all                   update every CDN list and reload services (default)
  cloudflare            update the CloudFlare list only
  gcore                 update the Gcore list only
  reload                reload the configured services only
  help                  show this help
"""

EPILOG = """\
examples:
  # Update everything with the default settings
  {prog}

  # Update CloudFlare only
  {prog} cloudflare

  # Update Gcore and reload nginx
  {prog} gcore --services=nginx

  # Update everything into another directory
  {prog} all --dir=/custom/path

  # Only reload services
  {prog} reload

  # Update CloudFlare with a custom file name
  {prog} cloudflare --cf-file=custom_cf.lst

logging:
  Every action is written to the system log with the tag {tag}:
    journalctl -t {tag} -f
    journalctl -t {tag} --since "1 hour ago"

cron:
  # Every day at 03:00
  0 3 * * * {prog} all

  # Every 6 hours
  0 */6 * * * {prog} all
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that raises instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise ConfigurationError(message)


def build_parser(settings: UpdaterSettings | None = None) -> argparse.ArgumentParser:
    """Build the argument parser.

    Args:
        settings: Settings used to show defaults in the help text.

    Returns:
        Configured parser.
    """
    defaults = settings or UpdaterSettings.model_construct()
    parser = _ArgumentParser(
        prog=PROG,
        description=DESCRIPTION,
        epilog=EPILOG.format(tag=defaults.log_tag, prog=PROG),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "commands",
        nargs="*",
        metavar="COMMAND",
        help=f"one or more of: {', '.join((*SELECTORS, 'help'))}",
    )
    parser.add_argument(
        "--dir",
        dest="target_dir",
        type=Path,
        metavar="PATH",
        help=f"target directory (default: {defaults.target_dir})",
    )
    parser.add_argument(
        "--services",
        metavar="LIST",
        help=(
            "comma-separated services to reload "
            f"(default: {','.join(defaults.services)}), e.g. --services=haproxy,nginx"
        ),
    )
    parser.add_argument(
        "--cf-file",
        dest="cloudflare_file",
        metavar="NAME",
        help=f"CloudFlare list file name (default: {defaults.cloudflare_file})",
    )
    parser.add_argument(
        "--gcore-file",
        dest="gcore_file",
        metavar="NAME",
        help=f"Gcore list file name (default: {defaults.gcore_file})",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="YAML config file (overrides environment variables)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="enable verbose output",
    )
    parser.add_argument(
        "-h", "--help",
        action="store_true",
        help="show this help and exit",
    )
    return parser


def apply_overrides(settings: UpdaterSettings, args: argparse.Namespace) -> UpdaterSettings:
    """Apply command-line overrides on top of settings.

    Args:
        settings: Settings from the environment or config file.
        args: Parsed command line arguments.

    Returns:
        New settings with the overrides applied.

    Raises:
        ConfigurationError: If an override is invalid.
    """
    updates: dict[str, Any] = {}

    if args.target_dir is not None:
        updates["target_dir"] = args.target_dir
        logger.info("Target directory set to: %s", args.target_dir)
    if args.services is not None:
        updates["services"] = parse_service_list(args.services)
        logger.info("Service list set to: %s", " ".join(updates["services"]))
    if args.cloudflare_file is not None:
        updates["cloudflare_file"] = args.cloudflare_file
        logger.info("CloudFlare file name set to: %s", args.cloudflare_file)
    if args.gcore_file is not None:
        updates["gcore_file"] = args.gcore_file
        logger.info("Gcore file name set to: %s", args.gcore_file)

    if not updates:
        return settings

    try:
        return UpdaterSettings(**{**settings.model_dump(), **updates})
    except ValidationError as e:
        msg = f"Invalid option value: {e}"
        raise ConfigurationError(msg) from e


def _configure_logging(settings: UpdaterSettings, verbose: bool) -> None:
    setup_logging(
        settings.log_tag,
        verbose=verbose,
        syslog=settings.syslog_enabled,
        address=settings.syslog_address,
    )


def _check_commands_before_help(commands: list[str]) -> None:
    """Reject unknown commands given ahead of a help request."""
    head = commands[: commands.index("help")] if "help" in commands else commands
    for command in head:
        if command not in SELECTORS:
            msg = f"Unknown option or command: {command}"
            raise ConfigurationError(msg, details={"argument": command})


def _fail(message: str) -> int:
    logger.error("%s", message)
    logger.error("Use '%s help' for usage", PROG)
    return 1


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command line arguments.

    Returns:
        Exit code.
    """
    argv = sys.argv[1:] if argv is None else list(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging(DEFAULT_LOG_TAG)
        return _fail(f"Invalid configuration in environment: {e}")

    parser = build_parser(settings)
    try:
        args = parser.parse_intermixed_args(argv)
    except ConfigurationError as e:
        _configure_logging(settings, verbose=False)
        return _fail(e.message)

    if args.help or "help" in args.commands:
        try:
            _check_commands_before_help(args.commands)
        except ConfigurationError as e:
            _configure_logging(settings, verbose=False)
            return _fail(e.message)
        parser.print_help()
        return 0

    _configure_logging(settings, args.verbose)

    try:
        if args.config is not None:
            settings = load_config(args.config)
            _configure_logging(settings, args.verbose)
            logger.info("Loaded configuration from %s", args.config)

        logger.info(SEPARATOR)
        logger.info("Starting CDN IP address update")
        logger.info(SEPARATOR)

        intents = resolve_intents(args.commands, implicit_all=not argv)
        settings = apply_overrides(settings, args)
    except ConfigurationError as e:
        return _fail(e.message)

    updater = CDNIPUpdater(settings)
    try:
        result = updater.run(intents)
    except UpdaterError as e:
        logger.error("Critical error: %s", e.message)
        return 1
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        return 1

    for provider_result in result.providers:
        logger.info(
            "%s: %d addresses in %s",
            provider_result.provider.value,
            provider_result.count,
            provider_result.path,
        )
    if result.failed_reloads:
        failed = ", ".join(r.service for r in result.failed_reloads)
        logger.warning("Services that failed to reload: %s", failed)

    logger.info(SEPARATOR)
    log_success(logger, "Update completed successfully")
    logger.info(SEPARATOR)
    return 0


if __name__ == "__main__":
    sys.exit(main())
