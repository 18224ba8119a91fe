"""S3 static website backend for pages deployments."""

import mimetypes
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError
from structlog import get_logger

from pages_pipeline.artifacts import unpack_archive
from pages_pipeline.config import Settings
from pages_pipeline.deploy.base import PagesDeployer
from pages_pipeline.deploy.client_factory import get_s3_client_kwargs
from pages_pipeline.errors import DeploymentError
from pages_pipeline.models import Artifact

logger = get_logger(__name__)


class S3PagesDeployer(PagesDeployer):
    """Publishes a site into an S3 bucket configured for website hosting.

    Objects left over from a previous deployment under the same prefix are
    removed, so the bucket mirrors the artifact exactly.
    """

    def __init__(self, settings: Settings, s3_client: Optional[Any] = None):
        """Initialize the deployer.

        Uses AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY if set; otherwise
        boto3 default credential provider (SSO, role, etc.).

        Args:
            settings: Application settings
            s3_client: Preconfigured client, mainly for tests
        """
        self.settings = settings
        self.bucket = settings.pages.bucket
        self.prefix = settings.pages.prefix.strip("/")
        self.s3_client = s3_client or boto3.client("s3", **get_s3_client_kwargs(settings))

    def _key(self, relative: str) -> str:
        parts = [p for p in (self.prefix, relative) if p]
        return "/".join(parts)

    def _content_type(self, relative: str) -> str:
        content_type, _ = mimetypes.guess_type(relative)
        if content_type is None:
            return "application/octet-stream"
        if content_type.startswith("text/") or content_type in ("application/javascript", "application/json"):
            return f"{content_type}; charset=utf-8"
        return content_type

    def _existing_keys(self) -> set[str]:
        paginator = self.s3_client.get_paginator("list_objects_v2")
        keys: set[str] = set()
        list_prefix = f"{self.prefix}/" if self.prefix else ""
        for page in paginator.paginate(Bucket=self.bucket, Prefix=list_prefix):
            for obj in page.get("Contents", []):
                keys.add(obj["Key"])
        return keys

    def deploy(self, artifact: Artifact, environment: str) -> str:
        """Upload every file of the artifact and prune stale objects.

        Raises:
            DeploymentError: If the bucket is not configured or S3 rejects a request
        """
        if not self.bucket:
            raise DeploymentError("PAGES_BUCKET is not configured")

        logger.info(
            "Deploying pages to S3",
            bucket=self.bucket,
            prefix=self.prefix,
            environment=environment,
            artifact=artifact.name,
        )

        uploaded: set[str] = set()
        try:
            existing = self._existing_keys()
            with tempfile.TemporaryDirectory(prefix="pages-s3-") as tmp:
                site_dir = Path(tmp)
                for relative in unpack_archive(artifact.path, site_dir):
                    key = self._key(relative)
                    with open(site_dir / relative, "rb") as body:
                        self.s3_client.put_object(
                            Bucket=self.bucket,
                            Key=key,
                            Body=body.read(),
                            ContentType=self._content_type(relative),
                            Metadata={
                                "artifact-sha256": artifact.sha256,
                                "environment": environment,
                                "upload-timestamp": datetime.now(timezone.utc).isoformat(),
                            },
                        )
                    uploaded.add(key)

            stale = sorted(existing - uploaded)
            # delete_objects accepts at most 1000 keys per request
            for start in range(0, len(stale), 1000):
                batch = stale[start:start + 1000]
                self.s3_client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )

        except ClientError as e:
            logger.error(
                "Failed to deploy pages to S3",
                bucket=self.bucket,
                environment=environment,
                error=str(e),
            )
            raise DeploymentError(
                f"Failed to deploy {artifact.name} to s3://{self.bucket}: {str(e)}"
            ) from e

        page_url = self.settings.page_url()
        logger.info(
            "Successfully deployed pages to S3",
            bucket=self.bucket,
            uploaded=len(uploaded),
            pruned=len(stale),
            page_url=page_url,
        )
        return page_url
