"""Built-in workflow: build the crate docs and publish them to pages hosting."""

from typing import Optional

from pages_pipeline.config import Settings, settings as default_settings
from pages_pipeline.models import (
    ActionStep,
    CommandStep,
    DeploymentEnvironment,
    Job,
    Trigger,
    Workflow,
)

BUILD_JOB = "build-doc"
DEPLOY_JOB = "deploy-pages"
DEPLOYMENT_STEP_ID = "deployment"


def build_deploy_doc_workflow(settings: Optional[Settings] = None) -> Workflow:
    """Return the two-job documentation workflow.

    ``build-doc`` checks out the sources, installs the toolchain, runs
    ``cargo doc``, writes the root redirect and uploads the site;
    ``deploy-pages`` needs it and publishes the uploaded artifact.
    """
    settings = settings or default_settings
    doc_path = settings.pipeline.doc_path
    runs_on = settings.runner.labels[0] if settings.runner.labels else "ubuntu-latest"

    build = Job(
        name=BUILD_JOB,
        runs_on=runs_on,
        steps=[
            ActionStep(uses="actions/checkout@v3"),
            CommandStep(name="Update Rust", run="rustup install --profile minimal stable"),
            CommandStep(name="Build docs", run="cargo doc --no-deps"),
            ActionStep(
                name="Index redirect",
                uses="pages-pipeline/index-redirect@v1",
                with_={"path": doc_path, "crate": settings.pipeline.crate_name},
            ),
            ActionStep(uses="actions/upload-pages-artifact@v1", with_={"path": doc_path}),
        ],
    )

    deploy = Job(
        name=DEPLOY_JOB,
        runs_on=runs_on,
        needs=[BUILD_JOB],
        permissions={"pages": "write", "id-token": "write"},
        environment=DeploymentEnvironment(
            name=settings.pages.environment,
            url="${{ steps.%s.outputs.page_url }}" % DEPLOYMENT_STEP_ID,
        ),
        steps=[
            ActionStep(
                name="Deploy to GitHub Pages",
                id=DEPLOYMENT_STEP_ID,
                uses="actions/deploy-pages@v1",
            ),
        ],
    )

    return Workflow(
        name="Deploy doc to Github Pages",
        trigger=Trigger(event=settings.pipeline.event, branches=[settings.pipeline.branch]),
        jobs=[build, deploy],
    )
