"""Boto3 client construction for the S3 pages backend.

Explicit AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY are passed through only when
both are set; otherwise boto3 resolves credentials through its default chain.
An endpoint URL may point the client at an S3-compatible host.
"""

import os
from typing import Any

from pages_pipeline.config import Settings


def get_s3_client_kwargs(settings: Settings) -> dict[str, Any]:
    """Return kwargs for ``boto3.client("s3", ...)``.

    Args:
        settings: Application settings providing region and endpoint

    Returns:
        Dict with at least 'region_name'. May include 'endpoint_url' and
        explicit credentials.
    """
    kwargs: dict[str, Any] = {
        "region_name": settings.pages.region,
    }
    if settings.pages.endpoint_url:
        kwargs["endpoint_url"] = settings.pages.endpoint_url
    access_key = os.environ.get("AWS_ACCESS_KEY_ID", "").strip()
    secret_key = os.environ.get("AWS_SECRET_ACCESS_KEY", "").strip()
    if access_key and secret_key:
        kwargs["aws_access_key_id"] = access_key
        kwargs["aws_secret_access_key"] = secret_key
    return kwargs
