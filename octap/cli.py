"""CLI entry point for octap."""

import argparse
import asyncio
import contextlib
import logging
import os
import signal
import sys
from collections.abc import Awaitable, Sequence
from datetime import timedelta
from pathlib import Path

from pydantic import SecretStr

from octap.actions import default_executors
from octap.config import default_config_path, resolve_config, save_template
from octap.display import ConsoleDisplay
from octap.git import RepositoryError, get_current_commit, get_repository
from octap.hooks import HookExecutor
from octap.models.action import parse_duration
from octap.monitor import Monitor, MonitorConfig
from octap.notifier import Notifier, resolve_hooks
from octap.providers.base import AuthenticationError
from octap.providers.github_actions import GitHubActionsConfig, GitHubActionsProvider

DEFAULT_API_URL = "https://api.github.com"
MIN_SHA_LENGTH = 7


def parse_interval(value: str) -> float:
    """Parse ``--interval`` given as ``"5s"``, ``"1m"`` or plain seconds."""
    parsed = parse_duration(value)
    try:
        seconds = (
            parsed.total_seconds()
            if isinstance(parsed, timedelta)
            else float(parsed)
        )
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid interval: {value!r}") from None
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"interval must be positive: {value!r}")
    return seconds


def default_token() -> str | None:
    """GitHub token taken from the environment."""
    return os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN") or None


async def run_until_signalled(monitoring: Awaitable[object]) -> None:
    """Await ``monitoring`` until it finishes or SIGINT/SIGTERM arrives.

    A signal cancels the monitoring task and returns normally. Cancelling
    the caller still propagates.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(monitoring)
    signals = (signal.SIGINT, signal.SIGTERM)

    for sig in signals:
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, task.cancel)

    try:
        await task
    except asyncio.CancelledError:
        current = asyncio.current_task()
        if current is not None and current.cancelling():
            raise
        logging.getLogger("octap").info("Monitoring cancelled")
    finally:
        for sig in signals:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)


async def run(
    *,
    commit: str | None = None,
    interval: float = 5.0,
    config_path: Path | None = None,
    silent: bool = False,
    token: str | None = None,
    api_url: str = DEFAULT_API_URL,
    directory: Path | None = None,
) -> int:
    """Monitor the workflow runs of a commit and return exit code."""
    log = logging.getLogger("octap")
    directory = directory or Path.cwd()

    try:
        repository = await get_repository(directory)
        commit_sha = commit or await get_current_commit(directory, log)
    except RepositoryError as exc:
        log.error("%s", exc)
        return 1

    if len(commit_sha) < MIN_SHA_LENGTH:
        log.error("Commit SHA is too short: %s", commit_sha)
        return 1

    config = await resolve_config(config_path, directory, log)
    hooks = HookExecutor(
        hooks=resolve_hooks(config, silent=silent),
        executors=default_executors(log),
        logger=log,
    )
    notifier = Notifier(repository=repository.full_name, hooks=hooks, logger=log)
    display = ConsoleDisplay(repo_name=repository.full_name, commit_sha=commit_sha)
    provider_config = GitHubActionsConfig(
        owner=repository.owner,
        repo=repository.name,
        token=SecretStr(token) if token else None,
        api_base_url=api_url,
    )

    log.info(
        "Monitoring %s@%s every %.1fs", repository.full_name, commit_sha, interval
    )

    try:
        async with GitHubActionsProvider.from_config(provider_config) as provider:
            monitor = Monitor(
                provider=provider,
                notifier=notifier,
                display=display,
                config=MonitorConfig(
                    repository=repository,
                    commit_sha=commit_sha,
                    interval=interval,
                ),
                logger=log,
            )
            await run_until_signalled(monitor.run())
    except AuthenticationError as exc:
        log.error("Authentication failed: %s", exc)
        return 1
    finally:
        await notifier.wait_for_pending_actions()

    return 0


def config_init(output: Path | None, force: bool) -> int:
    """Write the configuration template and return exit code."""
    log = logging.getLogger("octap")
    path = output or default_config_path()
    try:
        save_template(path, force=force)
    except OSError as exc:
        log.error("Failed to create config template: %s", exc)
        return 1
    print(f"Configuration template written to {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the ``octap`` command."""
    parser = argparse.ArgumentParser(
        prog="octap",
        description="Watch the GitHub Actions runs of a commit and notify",
    )
    parser.add_argument(
        "--commit",
        "-c",
        help="Commit SHA to monitor (default: HEAD)",
    )
    parser.add_argument(
        "--interval",
        "-i",
        type=parse_interval,
        default=5.0,
        help="Polling interval, e.g. 5s or 1m (default: 5s)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Config file path",
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Disable all notifications",
    )
    parser.add_argument(
        "--token",
        default=default_token(),
        help="GitHub token (default: $GITHUB_TOKEN or $GH_TOKEN)",
    )
    parser.add_argument(
        "--api-url",
        default=os.environ.get("OCTAP_GITHUB_API_URL", DEFAULT_API_URL),
        help="GitHub API base URL",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log progress information",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log debugging information",
    )

    commands = parser.add_subparsers(dest="command")
    config_parser = commands.add_parser("config", help="Manage octap configuration")
    config_commands = config_parser.add_subparsers(
        dest="config_command", required=True
    )
    init_parser = config_commands.add_parser(
        "init", help="Generate configuration template"
    )
    init_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output path for config file (default: ~/.config/octap/config.yml)",
    )
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Overwrite an existing file",
    )
    return parser


def log_level(args: argparse.Namespace) -> int:
    """Logging level selected by the verbosity flags."""
    if args.debug:
        return logging.DEBUG
    if args.verbose:
        return logging.INFO
    return logging.WARNING


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=log_level(args),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "config":
        sys.exit(config_init(args.output, args.force))

    exit_code = asyncio.run(
        run(
            commit=args.commit,
            interval=args.interval,
            config_path=args.config,
            silent=args.silent,
            token=args.token,
            api_url=args.api_url,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
