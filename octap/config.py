"""Load hook configuration from YAML files."""

import asyncio
import logging
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from octap.models.action import Action, action_adapter
from octap.models.config import Config, HooksConfig
from octap.models.event import HOOK_EVENTS
from octap.notifier import system_sounds

log = logging.getLogger(__name__)

CONFIG_FILENAMES = (".octap.yml", ".octap.yaml")


class ConfigurationError(ValueError):
    """Raised when a configuration file cannot be used."""


def default_config_path() -> Path:
    """Per-user configuration file."""
    return Path.home() / ".config" / "octap" / "config.yml"


async def load_config(path: Path, logger: logging.Logger = log) -> Config:
    """Load a configuration file.

    Args:
        path: YAML file to read
        logger: Receives warnings about skipped entries

    Returns:
        The parsed configuration

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If the file is not a valid configuration

    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    content = await asyncio.to_thread(path.read_text, encoding="utf-8")
    return parse_config(content, source=str(path), logger=logger)


def parse_config(
    content: str, *, source: str = "<string>", logger: logging.Logger = log
) -> Config:
    """Parse YAML text into a configuration.

    An invalid action entry is logged and skipped so that its siblings
    still load.
    """
    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {source}: {exc}") from exc

    if document is None:
        return Config()
    if not isinstance(document, Mapping):
        raise ConfigurationError(
            f"Invalid configuration in {source}: expected a mapping"
        )

    hooks = document.get("hooks")
    if hooks is None:
        return Config()
    if not isinstance(hooks, Mapping):
        raise ConfigurationError(
            f"Invalid configuration in {source}: 'hooks' must be a mapping"
        )

    for key in hooks:
        if key not in HOOK_EVENTS:
            logger.warning("Ignoring unknown hook %r in %s", key, source)

    parsed = {
        event: _parse_actions(hooks.get(event), event, source, logger)
        for event in HOOK_EVENTS
    }
    return Config(hooks=HooksConfig(**parsed))


def _parse_actions(
    entries: Any, event: str, source: str, logger: logging.Logger
) -> Sequence[Action]:
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise ConfigurationError(
            f"Invalid configuration in {source}: '{event}' must be a list"
        )

    actions: list[Action] = []
    for index, entry in enumerate(entries):
        try:
            actions.append(action_adapter.validate_python(entry))
        except ValidationError as exc:
            logger.warning(
                "Skipping invalid action %s[%d] in %s: %s",
                event,
                index,
                source,
                exc,
            )
    return tuple(actions)


async def load_config_from_directory(
    directory: Path, logger: logging.Logger = log
) -> tuple[Config, Path | None]:
    """Load the first project configuration file found in ``directory``.

    Returns:
        The configuration and the file it came from, or an empty
        configuration and None when no file exists

    Raises:
        ConfigurationError: If the file found is invalid

    """
    for name in CONFIG_FILENAMES:
        path = directory / name
        if path.is_file():
            return await load_config(path, logger), path
    return Config(), None


async def resolve_config(
    explicit: Path | None, directory: Path, logger: logging.Logger = log
) -> Config:
    """Find the configuration to use.

    An explicit path wins. Otherwise a project file in ``directory`` is
    used if it declares at least one hook, then the per-user file. A file
    that fails to load is reported and the defaults are used instead.
    """
    if explicit is not None:
        try:
            config = await load_config(explicit, logger)
        except (FileNotFoundError, ConfigurationError) as exc:
            logger.warning("Failed to load config, using defaults: %s", exc)
            return Config()
        logger.info("Loaded config from %s", explicit)
        return config

    try:
        config, path = await load_config_from_directory(directory, logger)
    except ConfigurationError as exc:
        logger.warning("Failed to load project config, using defaults: %s", exc)
        return Config()
    if path is not None and not config.hooks.is_empty:
        logger.info("Loaded config from %s", path)
        return config

    user_path = default_config_path()
    if not user_path.is_file():
        return Config()
    try:
        config = await load_config(user_path, logger)
    except ConfigurationError as exc:
        logger.warning("Failed to load user config, using defaults: %s", exc)
        return Config()
    logger.info("Loaded config from %s", user_path)
    return config


TEMPLATE_HEADER = """\
# octap configuration
#
# Each hook lists actions run when the matching event happens:
#   check_success / check_failure: a single workflow run finished
#   complete_success / complete_failure: every run of the commit finished
#
# Action types:
#   sound:   path
#   notify:  title, message, sound
#   slack:   webhook_url, message, color, icon_emoji, username
#   command: command, args, timeout, env
#
# Messages accept {{.Repository}}, {{.Workflow}}, {{.RunID}},
# {{.EventType}}, {{.RunURL}}, {{.URL}} and {{.Timestamp}}.
# Commands receive $OCTAP_EVENT_TYPE, $OCTAP_REPOSITORY, $OCTAP_WORKFLOW,
# $OCTAP_RUN_ID and $OCTAP_RUN_URL, usable in args.
"""

TEMPLATE_EXAMPLES = """\
    # - type: notify
    #   title: "octap"
    #   message: "{{.Workflow}} failed in {{.Repository}}"
    # - type: slack
    #   webhook_url: "$SLACK_WEBHOOK_URL"
    #   message: "{{.Workflow}} failed: {{.RunURL}}"
    #   color: "danger"
    # - type: command
    #   command: "~/bin/on-failure.sh"
    #   args: ["$OCTAP_REPOSITORY", "$OCTAP_RUN_URL"]
    #   timeout: "30s"
    #   env: ["NOTIFY_CHANNEL=ci"]
"""


def generate_template(platform: str = sys.platform) -> str:
    """Commented configuration using the platform's sound files."""
    success, failure = system_sounds(platform) or (
        "/path/to/success.wav",
        "/path/to/failure.wav",
    )
    sounds = {
        "check_success": success,
        "check_failure": failure,
        "complete_success": success,
        "complete_failure": failure,
    }

    lines = [TEMPLATE_HEADER, "hooks:"]
    for event in HOOK_EVENTS:
        lines.append(f"  {event}:")
        lines.append("    - type: sound")
        lines.append(f"      path: '{sounds[event]}'")
        if event == "check_failure":
            lines.append(TEMPLATE_EXAMPLES.rstrip("\n"))
    return "\n".join(lines) + "\n"


def save_template(
    path: Path, force: bool = False, platform: str = sys.platform
) -> None:
    """Write the configuration template to ``path``.

    Raises:
        FileExistsError: If ``path`` exists and ``force`` is not set

    """
    if path.exists() and not force:
        raise FileExistsError(
            f"Config file already exists: {path} (use --force to overwrite)"
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generate_template(platform), encoding="utf-8")
