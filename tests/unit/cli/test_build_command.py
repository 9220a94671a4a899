"""Unit tests for the dockstage build, stage and init commands.

Tests cover:
- Option overrides passed through to the workflow
- Dry run and skip modes
- Exit codes for configuration, engine and workflow errors
- Removal failures reported without failing the command
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from dockstage import __version__
from dockstage.cli.main import main
from dockstage.config.defaults import CONFIG_TEMPLATE
from dockstage.deploy.workflow import WorkflowResult
from dockstage.lib.errors import (
    BuildError,
    EngineNotAvailableError,
    PushError,
    RemovalError,
)
from dockstage.models.build import BuildConfig, ImageIdentity


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep DOCKSTAGE_* variables from the host out of the tests."""
    for name in (
        "DOCKSTAGE_SKIP",
        "DOCKSTAGE_PUSH",
        "DOCKSTAGE_REMOVE",
        "DOCKSTAGE_NO_CACHE",
        "DOCKSTAGE_PULL",
        "DOCKSTAGE_FORCE_RM",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path: Path, primary_dir: Path) -> Path:
    """Create a dockstage.yaml next to the primary directory."""
    config = tmp_path / "dockstage.yaml"
    config.write_text(
        "directory: docker\nimage_name: test-org/test-build\nimage_tags: [v1]\n"
    )
    return config


@pytest.fixture
def workflow_result() -> WorkflowResult:
    """A successful run that tagged v1."""
    return WorkflowResult(
        identity=ImageIdentity(
            image_id="sha256:0123456789abcdef0123456789",
            image_name="test-org/test-build",
            tags=["v1"],
        ),
        staged_files=["Dockerfile", "root/test"],
    )


@pytest.fixture
def mock_run_workflow(workflow_result: WorkflowResult) -> Generator[MagicMock]:
    """Patch run_workflow in the build command module."""
    with patch(
        "dockstage.cli.commands.build.run_workflow", return_value=workflow_result
    ) as mock:
        yield mock


def _passed_config(mock_run_workflow: MagicMock) -> BuildConfig:
    return mock_run_workflow.call_args.args[0]


class TestBuildCommand:
    """Tests for 'dockstage build'."""

    def test_build_success(
        self, runner: CliRunner, config_file: Path, mock_run_workflow: MagicMock
    ) -> None:
        """Test a successful build prints the image reference."""
        result = runner.invoke(main, ["build", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Build Configuration:" in result.output
        assert "Build Successful!" in result.output
        assert "test-org/test-build:v1" in result.output
        mock_run_workflow.assert_called_once()

    def test_build_quiet_prints_only_references(
        self, runner: CliRunner, config_file: Path, mock_run_workflow: MagicMock
    ) -> None:
        """Test that --quiet prints one reference per line."""
        result = runner.invoke(main, ["build", str(config_file), "-q"])

        assert result.exit_code == 0
        assert result.output == "test-org/test-build:v1\n"

    def test_options_override_file(
        self, runner: CliRunner, config_file: Path, mock_run_workflow: MagicMock
    ) -> None:
        """Test that CLI options reach the workflow configuration."""
        result = runner.invoke(
            main,
            [
                "build",
                str(config_file),
                "-t",
                "v2",
                "--tag",
                "v3",
                "--push",
                "--remove",
                "--no-cache",
                "--pull",
                "--force-rm",
                "-q",
            ],
        )

        assert result.exit_code == 0
        config = _passed_config(mock_run_workflow)
        assert config.image_tags == ["v2", "v3"]
        assert config.push is True
        assert config.remove is True
        assert config.build_options().no_cache is True
        assert config.build_options().pull is True
        assert config.build_options().force_rm is True

    def test_unset_flags_keep_file_values(
        self,
        runner: CliRunner,
        tmp_path: Path,
        primary_dir: Path,
        mock_run_workflow: MagicMock,
    ) -> None:
        """Test that omitted flags do not reset options set in the file."""
        config_file = tmp_path / "dockstage.yaml"
        config_file.write_text("directory: docker\nimage_name: app\npush: true\n")

        result = runner.invoke(main, ["build", str(config_file), "-q"])

        assert result.exit_code == 0
        assert _passed_config(mock_run_workflow).push is True

    def test_dry_run_shows_plan(
        self,
        runner: CliRunner,
        config_file: Path,
        mock_run_workflow: MagicMock,
        tmp_path: Path,
    ) -> None:
        """Test that --dry-run lists the plan and builds nothing."""
        result = runner.invoke(main, ["build", str(config_file), "--dry-run"])

        assert result.exit_code == 0
        assert "Staging plan:" in result.output
        assert "Dockerfile" in result.output
        assert "root/test" in result.output
        assert "[DRY RUN] No image was built" in result.output
        assert not (tmp_path / "target").exists()
        mock_run_workflow.assert_not_called()

    def test_skip(
        self, runner: CliRunner, config_file: Path, mock_run_workflow: MagicMock
    ) -> None:
        """Test that --skip does nothing."""
        result = runner.invoke(main, ["build", str(config_file), "--skip"])

        assert result.exit_code == 0
        assert "Skipping image build" in result.output
        mock_run_workflow.assert_not_called()

    def test_missing_config_exits_2(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that a missing configuration file is a configuration error."""
        result = runner.invoke(main, ["build", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 2
        assert "Configuration error" in result.output

    def test_invalid_config_exits_2(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that a validation failure is a configuration error."""
        config_file = tmp_path / "dockstage.yaml"
        config_file.write_text("directory: docker\n")

        result = runner.invoke(main, ["build", str(config_file)])

        assert result.exit_code == 2
        assert "image_name" in result.output

    def test_engine_unavailable_exits_3(
        self, runner: CliRunner, config_file: Path, mock_run_workflow: MagicMock
    ) -> None:
        """Test that an unreachable engine exits with code 3."""
        mock_run_workflow.side_effect = EngineNotAvailableError("tcp://nowhere:2375")

        result = runner.invoke(main, ["build", str(config_file)])

        assert result.exit_code == 3
        assert "Container engine is not available" in result.output

    @pytest.mark.parametrize(
        "error, stage",
        [
            (BuildError("COPY failed"), "build"),
            (PushError("v1", "denied"), "push"),
        ],
    )
    def test_workflow_error_exits_3(
        self,
        runner: CliRunner,
        config_file: Path,
        mock_run_workflow: MagicMock,
        error: Exception,
        stage: str,
    ) -> None:
        """Test that workflow failures name the failed step."""
        mock_run_workflow.side_effect = error

        result = runner.invoke(main, ["build", str(config_file)])

        assert result.exit_code == 3
        assert f"Error: {stage} failed" in result.output

    def test_build_log_visible_by_default(
        self,
        runner: CliRunner,
        config_file: Path,
        mock_run_workflow: MagicMock,
        workflow_result: WorkflowResult,
    ) -> None:
        """Test that engine build output is shown without --verbose."""

        def _run(config: BuildConfig, log_sink=None) -> WorkflowResult:
            log_sink("Step 1/2 : FROM alpine")
            return workflow_result

        mock_run_workflow.side_effect = _run

        result = runner.invoke(main, ["build", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Step 1/2 : FROM alpine" in result.output

    def test_build_log_hidden_when_quiet(
        self,
        runner: CliRunner,
        config_file: Path,
        mock_run_workflow: MagicMock,
        workflow_result: WorkflowResult,
    ) -> None:
        """Test that --quiet suppresses engine build output."""

        def _run(config: BuildConfig, log_sink=None) -> WorkflowResult:
            log_sink("Step 1/2 : FROM alpine")
            return workflow_result

        mock_run_workflow.side_effect = _run

        result = runner.invoke(main, ["build", str(config_file), "-q"])

        assert result.exit_code == 0
        assert "Step 1/2" not in result.output

    def test_removal_error_is_a_warning(
        self,
        runner: CliRunner,
        config_file: Path,
        mock_run_workflow: MagicMock,
        workflow_result: WorkflowResult,
    ) -> None:
        """Test that a failed removal still exits 0 with a warning."""
        workflow_result.removal_error = RemovalError("sha256:0123", "image is in use")

        result = runner.invoke(main, ["build", str(config_file), "--remove"])

        assert result.exit_code == 0
        assert "Build Successful!" in result.output
        assert "Warning:" in result.output
        assert "image is in use" in result.output


class TestStageCommand:
    """Tests for 'dockstage stage'."""

    def test_stage_copies_context(
        self, runner: CliRunner, config_file: Path, tmp_path: Path
    ) -> None:
        """Test that the context is staged without an engine."""
        result = runner.invoke(main, ["stage", str(config_file)])

        assert result.exit_code == 0, result.output
        staging = tmp_path / "target" / "docker"
        assert (staging / "Dockerfile").exists()
        assert (staging / "root" / "test").read_text() == "primary\n"
        assert "Staged 2 file(s)" in result.output

    def test_stage_quiet_prints_path(
        self, runner: CliRunner, config_file: Path, tmp_path: Path
    ) -> None:
        """Test that --quiet prints only the staging directory."""
        result = runner.invoke(main, ["stage", str(config_file), "-q"])

        assert result.exit_code == 0
        expected = tmp_path.resolve() / "target" / "docker"
        assert result.output.strip() == str(expected)

    def test_stage_missing_resource_exits_3(
        self, runner: CliRunner, tmp_path: Path, primary_dir: Path
    ) -> None:
        """Test that a missing resource directory fails staging."""
        config_file = tmp_path / "dockstage.yaml"
        config_file.write_text(
            "directory: docker\nimage_name: app\n"
            "resources:\n  - directory: missing-lib\n"
        )

        result = runner.invoke(main, ["stage", str(config_file)])

        assert result.exit_code == 3
        assert "Error: stage failed" in result.output
        assert "missing-lib" in result.output


class TestInitCommand:
    """Tests for 'dockstage init'."""

    def test_init_writes_template(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that init writes the starter configuration."""
        target = tmp_path / "dockstage.yaml"

        result = runner.invoke(main, ["init", str(target)])

        assert result.exit_code == 0
        assert target.read_text() == CONFIG_TEMPLATE

    def test_init_refuses_to_overwrite(
        self, runner: CliRunner, tmp_path: Path
    ) -> None:
        """Test that an existing file is kept unless --force is given."""
        target = tmp_path / "dockstage.yaml"
        target.write_text("keep me\n")

        result = runner.invoke(main, ["init", str(target)])

        assert result.exit_code == 2
        assert "already exists" in result.output
        assert target.read_text() == "keep me\n"

    def test_init_force_overwrites(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that --force replaces an existing file."""
        target = tmp_path / "dockstage.yaml"
        target.write_text("old\n")

        result = runner.invoke(main, ["init", str(target), "--force"])

        assert result.exit_code == 0
        assert target.read_text() == CONFIG_TEMPLATE


def test_version(runner: CliRunner) -> None:
    """Test that --version reports the package version."""
    result = runner.invoke(main, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
