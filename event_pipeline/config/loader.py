"""Read pipeline configuration documents from disk."""

from __future__ import annotations

import base64
import hashlib
import json
from pathlib import Path
from typing import Union

from event_pipeline.config.types import PipelineConfig

from event_pipeline.utils.logger import get_logger

logger = get_logger(__name__)

_CHUNK_SIZE = 1024 * 1024


def source_code_hash(path: Union[str, Path]) -> str:
    """Return the base64-encoded SHA-256 digest of a deployment archive."""
    digest = hashlib.sha256()
    with Path(path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return base64.b64encode(digest.digest()).decode("ascii")


def with_code_hash(config: PipelineConfig, *, base_dir: Union[str, Path, None] = None) -> PipelineConfig:
    """Return a copy of ``config`` with ``lambda_code_hash`` filled when the code is a file.

    Directories and missing paths are left alone; the orchestration layer
    hashes those itself when it packages the asset.
    """
    result = config.copy()
    code = result.get("lambda_code")
    if not code or result.get("lambda_code_hash"):
        return result
    location = Path(code)
    if base_dir is not None and not location.is_absolute():
        location = Path(base_dir) / location
    if location.is_file():
        result["lambda_code_hash"] = source_code_hash(location)
        logger.debug("Computed lambda code hash", extra={"lambda_code": str(location)})
    return result


def load_config_file(path: Union[str, Path]) -> PipelineConfig:
    """Load a JSON pipeline configuration document.

    Relative ``lambda_code`` locations are resolved against the document's
    directory when computing the content hash.
    """
    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as fh:
        document = json.load(fh)
    if not isinstance(document, dict):
        raise ValueError(f"Pipeline configuration must be a JSON object: {config_path}")
    return with_code_hash(document, base_dir=config_path.parent)
