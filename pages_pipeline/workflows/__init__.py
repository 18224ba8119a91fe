"""Workflow definitions and loading."""

from pages_pipeline.workflows.deploy_doc import build_deploy_doc_workflow
from pages_pipeline.workflows.loader import load_workflow, workflow_from_dict

__all__ = [
    "build_deploy_doc_workflow",
    "load_workflow",
    "workflow_from_dict",
]
