"""JSON archive import/export for token snapshots.

The archive is a JSON list of flat objects, one per token, with every token
attribute present (null where unknown). Legacy ``tokens.json`` files using the
API's camelCase keys load as well.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from src.models.token import Token

logger = structlog.get_logger(__name__)


def load_token_archive(path: str | Path) -> list[Token]:
    """Load tokens from an archive. A missing file loads as an empty list.

    Raises ValueError for a file that is not a JSON list of complete records.
    """
    archive = Path(path)
    if not archive.exists():
        logger.warning("token_archive_missing", path=str(archive))
        return []

    data = json.loads(archive.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        msg = f"{archive} must contain a JSON list of token records"
        raise ValueError(msg)
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            msg = f"{archive} entry {index} is not a token record object"
            raise ValueError(msg)

    tokens = [Token.from_record(record) for record in data]
    logger.info("token_archive_loaded", path=str(archive), tokens=len(tokens))
    return tokens


def dump_token_archive(path: str | Path, tokens: list[Token]) -> int:
    """Write tokens to an archive, replacing the file. Returns count written."""
    archive = Path(path)
    archive.parent.mkdir(parents=True, exist_ok=True)
    payload = [token.to_record() for token in tokens]
    tmp_path = archive.with_suffix(archive.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    tmp_path.replace(archive)
    logger.info("token_archive_written", path=str(archive), tokens=len(payload))
    return len(payload)
