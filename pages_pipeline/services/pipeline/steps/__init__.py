"""Pipeline step implementations and the action registry."""

from .checkout_step import CheckoutStep
from .deploy_pages_step import DeployPagesStep
from .index_redirect_step import IndexRedirectStep
from .registry import ActionRegistry
from .run_command_step import RunCommandStep
from .upload_pages_artifact_step import PAGES_ARTIFACT_NAME, UploadPagesArtifactStep

__all__ = [
    "ActionRegistry",
    "CheckoutStep",
    "DeployPagesStep",
    "IndexRedirectStep",
    "PAGES_ARTIFACT_NAME",
    "RunCommandStep",
    "UploadPagesArtifactStep",
]
