"""Tests for configuration loading."""

import logging
from pathlib import Path

import pytest
import yaml

from octap.actions.command import CommandActionExecutor, build_environment
from octap.config import (
    ConfigurationError,
    generate_template,
    load_config,
    load_config_from_directory,
    parse_config,
    resolve_config,
    save_template,
)
from octap.models.action import CommandAction, NotifyAction, SoundAction
from octap.models.event import WorkflowEvent

VALID_CONFIG = """\
hooks:
  check_success:
    - type: sound
      path: /path/to/sound.mp3
  check_failure:
    - type: notify
      message: "Test failed"
"""


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Empty project directory."""
    project = tmp_path / "project"
    project.mkdir()
    return project


class TestParseConfig:
    """Tests for parse_config."""

    def test_parses_valid_yaml(self) -> None:
        """Hooks load in order with their typed actions."""
        config = parse_config(VALID_CONFIG)

        assert len(config.hooks.check_success) == 1
        assert isinstance(config.hooks.check_success[0], SoundAction)
        assert len(config.hooks.check_failure) == 1
        assert isinstance(config.hooks.check_failure[0], NotifyAction)
        assert config.hooks.complete_success == ()

    def test_empty_document_is_empty_config(self) -> None:
        """An empty file configures nothing."""
        assert parse_config("").hooks.is_empty

    def test_missing_hooks_is_empty_config(self) -> None:
        """A document without hooks configures nothing."""
        assert parse_config("other: value\n").hooks.is_empty

    def test_rejects_malformed_yaml(self) -> None:
        """YAML syntax errors are reported."""
        content = "hooks:\n  check_success:\n    - type sound\n      path: /x.wav\n"

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            parse_config(content)

    @pytest.mark.parametrize(
        "content",
        ["- just\n- a list\n", "hooks: [1, 2]\n", "hooks:\n  check_success: sound\n"],
    )
    def test_rejects_invalid_structure(self, content: str) -> None:
        """Documents of the wrong shape are reported."""
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            parse_config(content)

    def test_skips_invalid_action(self, caplog: pytest.LogCaptureFixture) -> None:
        """A broken entry is logged and its siblings still load."""
        content = """\
hooks:
  complete_failure:
    - type: email
      to: someone@example.com
    - type: command
      command: ./notify.sh
      timeout: 100ms
    - type: slack
      message: "missing webhook"
    - type: notify
      message: "{{.Branch}}"
"""
        with caplog.at_level(logging.WARNING):
            config = parse_config(content, source="test.yml")

        assert len(config.hooks.complete_failure) == 1
        action = config.hooks.complete_failure[0]
        assert isinstance(action, CommandAction)
        assert action.timeout.total_seconds() == pytest.approx(0.1)
        assert caplog.text.count("Skipping invalid action") == 3
        assert "complete_failure[0]" in caplog.text

    def test_warns_about_unknown_hook(self, caplog: pytest.LogCaptureFixture) -> None:
        """Unknown hook names are reported and ignored."""
        with caplog.at_level(logging.WARNING):
            config = parse_config("hooks:\n  on_success: []\n")

        assert config.hooks.is_empty
        assert "Ignoring unknown hook 'on_success'" in caplog.text


class TestLoadConfig:
    """Tests for load_config."""

    async def test_loads_file(self, tmp_path: Path) -> None:
        """A file on disk is parsed."""
        path = tmp_path / "config.yml"
        path.write_text(VALID_CONFIG)

        config = await load_config(path)

        assert len(config.hooks.check_success) == 1

    async def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            await load_config(tmp_path / "missing.yml")


class TestLoadConfigFromDirectory:
    """Tests for load_config_from_directory."""

    async def test_no_config_file(self, project: Path) -> None:
        """An empty directory yields an empty config and no path."""
        config, path = await load_config_from_directory(project)

        assert path is None
        assert config.hooks.is_empty

    @pytest.mark.parametrize("name", [".octap.yml", ".octap.yaml"])
    async def test_finds_config_file(self, project: Path, name: str) -> None:
        """Both file name spellings are found."""
        (project / name).write_text(VALID_CONFIG)

        config, path = await load_config_from_directory(project)

        assert path == project / name
        assert len(config.hooks.check_success) == 1

    async def test_yml_has_priority_over_yaml(self, project: Path) -> None:
        """.octap.yml wins when both files exist."""
        (project / ".octap.yml").write_text(
            "hooks:\n  check_success:\n    - type: sound\n      path: /test/yml.wav\n"
        )
        (project / ".octap.yaml").write_text(
            "hooks:\n  check_success:\n    - type: sound\n      path: /test/yaml.wav\n"
        )

        config, path = await load_config_from_directory(project)

        assert path == project / ".octap.yml"
        action = config.hooks.check_success[0]
        assert isinstance(action, SoundAction)
        assert action.path == "/test/yml.wav"

    async def test_invalid_file_raises(self, project: Path) -> None:
        """An invalid project file is reported."""
        (project / ".octap.yml").write_text("hooks: [\n")

        with pytest.raises(ConfigurationError):
            await load_config_from_directory(project)


class TestResolveConfig:
    """Tests for resolve_config."""

    async def test_explicit_path_wins(
        self, tmp_path: Path, project: Path, home: Path
    ) -> None:
        """An explicit file is used even when a project file exists."""
        explicit = tmp_path / "explicit.yml"
        explicit.write_text(
            "hooks:\n  complete_success:\n    - type: sound\n      path: /a.wav\n"
        )
        (project / ".octap.yml").write_text(VALID_CONFIG)

        config = await resolve_config(explicit, project)

        assert len(config.hooks.complete_success) == 1
        assert config.hooks.check_success == ()

    async def test_missing_explicit_path_falls_back_to_defaults(
        self,
        tmp_path: Path,
        project: Path,
        home: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A missing explicit file is reported and an empty config used."""
        with caplog.at_level(logging.WARNING):
            config = await resolve_config(tmp_path / "missing.yml", project)

        assert config.hooks.is_empty
        assert "using defaults" in caplog.text

    async def test_project_file_used(self, project: Path, home: Path) -> None:
        """A project file with hooks is used."""
        (project / ".octap.yml").write_text(VALID_CONFIG)

        config = await resolve_config(None, project)

        assert len(config.hooks.check_failure) == 1

    async def test_project_file_without_hooks_falls_through(
        self, project: Path, home: Path
    ) -> None:
        """A project file with no hooks defers to the user config."""
        (project / ".octap.yml").write_text("hooks: {}\n")
        user_config = home / ".config" / "octap" / "config.yml"
        user_config.parent.mkdir(parents=True)
        user_config.write_text(VALID_CONFIG)

        config = await resolve_config(None, project)

        assert len(config.hooks.check_success) == 1

    async def test_no_config_anywhere(self, project: Path, home: Path) -> None:
        """Nothing found yields an empty config."""
        config = await resolve_config(None, project)

        assert config.hooks.is_empty

    async def test_invalid_project_file_falls_back_to_defaults(
        self, project: Path, home: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A broken project file is reported and an empty config used."""
        (project / ".octap.yml").write_text("hooks: [\n")

        with caplog.at_level(logging.WARNING):
            config = await resolve_config(None, project)

        assert config.hooks.is_empty
        assert "Failed to load project config" in caplog.text


class TestTemplate:
    """Tests for the configuration template."""

    @pytest.mark.parametrize("platform", ["darwin", "linux", "win32", "freebsd"])
    def test_template_is_loadable(self, platform: str) -> None:
        """The generated template parses into sound hooks for every event."""
        template = generate_template(platform)

        assert "hooks:" in template
        assert "- type: sound" in template
        assert "path:" in template
        config = parse_config(template)
        for event in (
            "check_success",
            "check_failure",
            "complete_success",
            "complete_failure",
        ):
            actions = config.hooks.actions_for(event)  # type: ignore[arg-type]
            assert len(actions) == 1
            assert isinstance(actions[0], SoundAction)

    def test_template_uses_platform_sounds(self) -> None:
        """macOS templates reference the system sounds."""
        document = yaml.safe_load(generate_template("darwin"))

        paths = [
            action["path"]
            for actions in document["hooks"].values()
            for action in actions
        ]
        assert "/System/Library/Sounds/Glass.aiff" in paths
        assert "/System/Library/Sounds/Basso.aiff" in paths

    def test_template_examples_are_usable(self) -> None:
        """Uncommented examples load and the command receives event details."""
        template = generate_template("linux").replace("    # ", "    ")
        event = WorkflowEvent(
            kind="check_failure",
            repository="octo/repo",
            workflow="CI",
            run_id=42,
            url="https://github.com/octo/repo/actions/runs/42",
        )

        actions = parse_config(template).hooks.actions_for("check_failure")

        assert [action.type for action in actions] == [
            "sound",
            "notify",
            "slack",
            "command",
        ]
        command = actions[-1]
        assert isinstance(command, CommandAction)
        argv = CommandActionExecutor(platform="linux").build_argv(
            command, build_environment(command, event, base={})
        )
        assert argv[1:] == ["octo/repo", "https://github.com/octo/repo/actions/runs/42"]

    def test_save_template_creates_file(self, tmp_path: Path) -> None:
        """The template is written, creating parent directories."""
        path = tmp_path / "nested" / "config.yml"

        save_template(path)

        assert "hooks:" in path.read_text()

    def test_save_template_refuses_to_overwrite(self, tmp_path: Path) -> None:
        """An existing file is only replaced with force."""
        path = tmp_path / "config.yml"
        path.write_text("keep me")

        with pytest.raises(FileExistsError):
            save_template(path)
        assert path.read_text() == "keep me"

        save_template(path, force=True)
        assert "hooks:" in path.read_text()
