"""
Knowledge Document Loader
-------------------------
Loads the default knowledge document once per process from a local file
or an S3 object (``s3://bucket/key``) and caches it read-only.
"""

import threading
from pathlib import Path
from typing import Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import config
from ..errors import ConfigurationMissing
from ..utils.logger import get_logger

logger = get_logger(__name__)

_knowledge_document: Optional[str] = None
_lock = threading.Lock()


def _parse_s3_uri(uri: str) -> Tuple[str, str]:
    bucket, _, key = uri[len("s3://"):].partition("/")
    if not bucket or not key:
        raise ConfigurationMissing(f"KNOWLEDGE_BASE_PATH is not a valid S3 URI: {uri}")
    return bucket, key


def _read_s3_object(uri: str) -> str:
    bucket, key = _parse_s3_uri(uri)
    try:
        s3_client = boto3.client("s3", region_name=config.aws_region)
        response = s3_client.get_object(Bucket=bucket, Key=key)
        content = response["Body"].read()
        logger.info(f"Loaded {len(content)} bytes of knowledge from s3://{bucket}/{key}")
        return content.decode("utf-8-sig")
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error reading knowledge document from S3: {e}")
        raise ConfigurationMissing(f"Could not read knowledge document {uri}: {e}")


def _read_local_file(path: str) -> str:
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except OSError as e:
        logger.error(f"Error reading knowledge document file: {e}")
        raise ConfigurationMissing(f"Could not read knowledge document {path}: {e}")
    logger.info(f"Loaded {len(text)} characters of knowledge from {path}")
    return text


def read_knowledge_source(source: str) -> str:
    """Read a knowledge document from a local path or an s3:// URI."""
    if source.startswith("s3://"):
        return _read_s3_object(source)
    return _read_local_file(source)


def load_default_knowledge_document() -> str:
    """
    Return the configured default knowledge document.

    The document is read at most once per process; concurrent callers wait
    on the lock and then share the cached text.

    Raises:
        ConfigurationMissing: If KNOWLEDGE_BASE_PATH is unset or unreadable
    """
    global _knowledge_document
    if _knowledge_document is not None:
        return _knowledge_document

    with _lock:
        if _knowledge_document is None:
            source = config.knowledge_base_path
            if not source:
                raise ConfigurationMissing(
                    "No knowledgeBaseContent in request and KNOWLEDGE_BASE_PATH environment variable not set."
                )
            _knowledge_document = read_knowledge_source(source)
    return _knowledge_document


def clear_knowledge_cache() -> None:
    """Drop the cached document so the next request reloads it."""
    global _knowledge_document
    with _lock:
        _knowledge_document = None
