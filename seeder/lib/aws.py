"""AWS session, region and stage resolution.

Resolved once before any write and handed to the backend.

Environment Variables:
    AWS_REGION / AWS_DEFAULT_REGION: Region when none is given
    AWS_PROFILE: Named profile (boto3 reads it itself)
    AWS_ENDPOINT_URL: Custom endpoint (DynamoDB Local, LocalStack)
    SEEDER_STAGE: Deployment stage when none is given
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import boto3

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_REGION",
    "DEFAULT_STAGE",
    "resolve_region",
    "resolve_stage",
    "resolve_endpoint_url",
    "resolve_session",
]

DEFAULT_REGION = "us-east-1"
DEFAULT_STAGE = "dev"


def resolve_region(explicit: Optional[str] = None, configured: Optional[str] = None) -> str:
    """CLI value, then environment, then config file, then us-east-1."""
    return (
        explicit
        or os.environ.get("AWS_REGION")
        or os.environ.get("AWS_DEFAULT_REGION")
        or configured
        or DEFAULT_REGION
    )


def resolve_stage(explicit: Optional[str] = None, configured: Optional[str] = None) -> str:
    """CLI value, then SEEDER_STAGE, then config file, then dev."""
    return explicit or os.environ.get("SEEDER_STAGE") or configured or DEFAULT_STAGE


def resolve_endpoint_url(explicit: Optional[str] = None) -> Optional[str]:
    return explicit or os.environ.get("AWS_ENDPOINT_URL") or None


def resolve_session(
    region: Optional[str] = None,
    profile: Optional[str] = None,
) -> boto3.Session:
    """Build the boto3 session used for every write."""
    session = boto3.Session(profile_name=profile or None, region_name=region)
    logger.debug(
        "Using AWS session region=%s profile=%s",
        session.region_name,
        profile or os.environ.get("AWS_PROFILE") or "default",
    )
    return session
