"""Tests for individual pipeline steps and the action registry."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pages_pipeline.artifacts import ArtifactStore
from pages_pipeline.errors import UnknownActionError
from pages_pipeline.models import ActionStep, Artifact, CommandStep, Job, StepStatus
from pages_pipeline.services.pipeline import JobContext, JobPipeline
from pages_pipeline.services.pipeline.base_step import TIMEOUT_EXIT_STATUS
from pages_pipeline.services.pipeline.steps import (
    ActionRegistry,
    CheckoutStep,
    DeployPagesStep,
    IndexRedirectStep,
    RunCommandStep,
    UploadPagesArtifactStep,
)
from pages_pipeline.site import render_index_redirect

DEPLOY_PERMISSIONS = {"pages": "write", "id-token": "write"}


def make_context(tmp_path: Path, permissions=None, artifacts=None, environment=None) -> JobContext:
    workspace = tmp_path / "workspace"
    workspace.mkdir(exist_ok=True)
    job = Job(
        name="test-job",
        runs_on="ubuntu-latest",
        permissions=permissions or {},
        environment=environment,
    )
    return JobContext(
        job,
        workspace,
        "run-test",
        ArtifactStore(tmp_path / "artifacts", "run-test"),
        artifacts,
    )


class TestRunCommandStep:
    """Tests for RunCommandStep."""

    @pytest.mark.asyncio
    async def test_success_runs_in_workspace(self, tmp_path):
        context = make_context(tmp_path)
        step = RunCommandStep("echo built > out.txt", shell="sh", name="Build")

        assert await step.run(context) is True
        assert (context.workspace / "out.txt").read_text().strip() == "built"
        assert context.step_results[0].status == StepStatus.SUCCEEDED
        assert context.step_results[0].exit_status == 0

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_recorded(self, tmp_path):
        context = make_context(tmp_path)
        step = RunCommandStep("exit 3", shell="sh", name="Fails")

        assert await step.run(context) is False
        result = context.step_results[0]
        assert result.status == StepStatus.FAILED
        assert result.exit_status == 3
        assert result.name == "Fails"
        assert context.errors[0]["step"] == "Fails"

    @pytest.mark.asyncio
    async def test_exposes_run_metadata_to_commands(self, tmp_path):
        context = make_context(tmp_path)
        step = RunCommandStep('echo "$PIPELINE_RUN_ID/$PIPELINE_JOB" > meta.txt', shell="sh")

        assert await step.run(context)
        assert (context.workspace / "meta.txt").read_text().strip() == "run-test/test-job"

    @pytest.mark.asyncio
    async def test_working_directory(self, tmp_path):
        context = make_context(tmp_path)
        (context.workspace / "docs").mkdir()
        step = RunCommandStep("pwd > where.txt", shell="sh", working_directory="docs")

        assert await step.run(context)
        assert (context.workspace / "docs" / "where.txt").exists()

    @pytest.mark.asyncio
    async def test_timeout_kills_command(self, tmp_path):
        context = make_context(tmp_path)
        step = RunCommandStep("sleep 30", shell="sh", timeout_minutes=0.002)

        assert await step.run(context) is False
        assert context.step_results[0].exit_status == TIMEOUT_EXIT_STATUS

    @pytest.mark.asyncio
    async def test_output_line_longer_than_stream_buffer(self, tmp_path):
        context = make_context(tmp_path)
        step = RunCommandStep(
            "head -c 100000 /dev/zero | tr '\\0' x; echo; touch done",
            shell="sh",
            name="Long line",
        )

        assert await step.run(context) is True
        assert (context.workspace / "done").exists()
        assert context.step_results[0].exit_status == 0

    @pytest.mark.asyncio
    async def test_command_is_killed_when_output_handling_fails(self, tmp_path):
        context = make_context(tmp_path)
        step = RunCommandStep("sleep 1; touch late", shell="sh")

        with patch.object(
            RunCommandStep, "_stream_output", new_callable=AsyncMock, side_effect=RuntimeError("broken pipe")
        ):
            assert await step.run(context) is False

        await asyncio.sleep(1.5)
        assert not (context.workspace / "late").exists()
        assert context.step_results[0].error == "broken pipe"

    @pytest.mark.asyncio
    async def test_missing_shell(self, tmp_path):
        context = make_context(tmp_path)
        step = RunCommandStep("true", shell="/nonexistent/shell")

        assert await step.run(context) is False
        assert context.step_results[0].exit_status == 127


class TestCheckoutStep:
    """Tests for CheckoutStep."""

    @pytest.mark.asyncio
    async def test_copies_sources_without_vcs_or_build_output(self, tmp_path, source_tree):
        context = make_context(tmp_path)

        assert await CheckoutStep(source_tree).run(context)

        assert (context.workspace / "Cargo.toml").exists()
        assert (context.workspace / "src" / "lib.rs").exists()
        assert not (context.workspace / ".git").exists()
        assert not (context.workspace / "target").exists()

    @pytest.mark.asyncio
    async def test_missing_source(self, tmp_path):
        context = make_context(tmp_path)

        assert await CheckoutStep(tmp_path / "missing").run(context) is False

    @pytest.mark.asyncio
    async def test_path_may_not_escape_workspace(self, tmp_path, source_tree):
        context = make_context(tmp_path)

        assert await CheckoutStep(source_tree, path="../outside").run(context) is False
        assert not (tmp_path / "outside").exists()


class TestIndexRedirectStep:
    """Tests for IndexRedirectStep."""

    @pytest.mark.asyncio
    async def test_writes_redirect(self, tmp_path):
        context = make_context(tmp_path)
        doc_dir = context.workspace / "target" / "doc"
        doc_dir.mkdir(parents=True)

        assert await IndexRedirectStep("rahjong").run(context)
        assert (doc_dir / "index.html").read_text() == render_index_redirect("rahjong")

    @pytest.mark.asyncio
    async def test_fails_when_docs_were_not_built(self, tmp_path):
        context = make_context(tmp_path)

        assert await IndexRedirectStep("rahjong").run(context) is False
        assert "not found" in context.step_results[0].error


class TestUploadPagesArtifactStep:
    """Tests for UploadPagesArtifactStep."""

    @pytest.mark.asyncio
    async def test_uploads_artifact(self, tmp_path):
        context = make_context(tmp_path)
        doc_dir = context.workspace / "target" / "doc"
        doc_dir.mkdir(parents=True)
        (doc_dir / "index.html").write_text("x")

        step = UploadPagesArtifactStep("./target/doc", step_id="upload")
        assert await step.run(context)

        assert context.artifact is not None
        assert context.artifact.name == "github-pages"
        assert context.artifact.file_count == 1
        assert context.step_outputs["upload"]["artifact_id"] == context.artifact.sha256

    @pytest.mark.asyncio
    async def test_only_one_artifact_per_job(self, tmp_path):
        context = make_context(tmp_path)
        (context.workspace / "site").mkdir()
        (context.workspace / "site" / "a.html").write_text("a")

        assert await UploadPagesArtifactStep("site").run(context)
        assert await UploadPagesArtifactStep("site", artifact_name="second").run(context) is False

    @pytest.mark.asyncio
    async def test_missing_path(self, tmp_path):
        context = make_context(tmp_path)

        assert await UploadPagesArtifactStep("./target/doc").run(context) is False
        assert context.artifact is None


class TestDeployPagesStep:
    """Tests for DeployPagesStep."""

    @pytest.fixture
    def artifact(self, tmp_path):
        site = tmp_path / "site"
        site.mkdir()
        (site / "index.html").write_text("<html></html>")
        return ArtifactStore(tmp_path / "upstream", "run-test").save("github-pages", site)

    @pytest.mark.asyncio
    async def test_deploys_and_sets_page_url(self, tmp_path, artifact):
        deployer = MagicMock()
        deployer.deploy = MagicMock(return_value="https://example.test/")
        context = make_context(
            tmp_path,
            permissions=DEPLOY_PERMISSIONS,
            artifacts={"github-pages": artifact},
            environment={"name": "github-pages"},
        )

        assert await DeployPagesStep(deployer, step_id="deployment").run(context)

        deployer.deploy.assert_called_once_with(artifact, "github-pages")
        assert context.step_outputs["deployment"]["page_url"] == "https://example.test/"
        assert context.step_results[0].outputs == {"page_url": "https://example.test/"}

    @pytest.mark.asyncio
    async def test_requires_permissions(self, tmp_path, artifact):
        deployer = MagicMock()
        context = make_context(
            tmp_path,
            permissions={"pages": "write"},
            artifacts={"github-pages": artifact},
        )

        assert await DeployPagesStep(deployer).run(context) is False
        assert "id-token" in context.step_results[0].error
        deployer.deploy.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_injected_artifact(self, tmp_path):
        deployer = MagicMock()
        context = make_context(tmp_path, permissions=DEPLOY_PERMISSIONS)

        assert await DeployPagesStep(deployer).run(context) is False
        assert "not provided" in context.step_results[0].error
        deployer.deploy.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_empty_artifact(self, tmp_path):
        deployer = MagicMock()
        empty = Artifact(name="github-pages", path=tmp_path / "gone.tar.gz", file_count=1)
        context = make_context(
            tmp_path,
            permissions=DEPLOY_PERMISSIONS,
            artifacts={"github-pages": empty},
        )

        assert await DeployPagesStep(deployer).run(context) is False
        assert "empty" in context.step_results[0].error
        deployer.deploy.assert_not_called()


class TestJobPipeline:
    """Tests for ordered execution with stop-at-first-failure."""

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(self, tmp_path):
        context = make_context(tmp_path)
        pipeline = JobPipeline(
            "test-job",
            [
                RunCommandStep("touch one", shell="sh", name="one"),
                RunCommandStep("exit 2", shell="sh", name="two"),
                RunCommandStep("touch three", shell="sh", name="three"),
            ],
        )

        await pipeline.execute(context)

        assert context.success is False
        assert [r.name for r in context.step_results] == ["one", "two"]
        assert (context.workspace / "one").exists()
        assert not (context.workspace / "three").exists()

    @pytest.mark.asyncio
    async def test_all_steps_succeed(self, tmp_path):
        context = make_context(tmp_path)
        pipeline = JobPipeline(
            "test-job",
            [
                RunCommandStep("true", shell="sh", name="a"),
                RunCommandStep("true", shell="sh", name="b"),
            ],
        )

        await pipeline.execute(context)

        assert context.success is True
        assert [r.name for r in context.step_results] == ["a", "b"]
        assert [r.index for r in context.step_results] == [0, 1]


class TestActionRegistry:
    """Tests for ActionRegistry."""

    def test_builds_known_steps(self, test_settings):
        registry = ActionRegistry(test_settings, deployer=MagicMock())

        assert isinstance(registry.build(CommandStep(run="cargo doc")), RunCommandStep)
        assert isinstance(registry.build(ActionStep(uses="actions/checkout@v3")), CheckoutStep)
        assert isinstance(
            registry.build(ActionStep(uses="actions/upload-pages-artifact@v1", with_={"path": "d"})),
            UploadPagesArtifactStep,
        )
        assert isinstance(registry.build(ActionStep(uses="actions/deploy-pages@v1")), DeployPagesStep)
        redirect = registry.build(ActionStep(uses="pages-pipeline/index-redirect@v1"))
        assert isinstance(redirect, IndexRedirectStep)
        assert redirect.crate_name == "rahjong"
        assert redirect.path == "./target/doc"

    def test_command_steps_use_configured_shell(self, test_settings):
        step = ActionRegistry(test_settings).build(CommandStep(run="true", id="x"))

        assert step.shell == "sh"
        assert step.step_id == "x"

    def test_unknown_action(self, test_settings):
        with pytest.raises(UnknownActionError):
            ActionRegistry(test_settings).build(ActionStep(uses="actions/setup-node@v4"))

    def test_unsupported_version(self, test_settings):
        registry = ActionRegistry(test_settings)

        assert not registry.supports("actions/checkout@v1")
        with pytest.raises(UnknownActionError):
            registry.build(ActionStep(uses="actions/checkout@v1"))
