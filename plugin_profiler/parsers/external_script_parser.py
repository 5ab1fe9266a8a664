"""Script parser that delegates to an external extractor process.

The extractor is invoked as ``<command> <script path>`` and must print a
JSON array of entity objects (``type``, ``name``, ``line``, optional
``subtype`` and ``meta``) on a single line.  Anything else it prints is
treated as diagnostics.
"""

from __future__ import annotations

import json
import shlex
import subprocess
from typing import Any, Optional

import structlog

from plugin_profiler.config import settings
from plugin_profiler.parsers.base import ScriptEntity, ScriptParser

logger = structlog.get_logger(__name__)


def parse_payload(output: str) -> tuple[Optional[list[Any]], list[str]]:
    """Split extractor output into the entity payload and diagnostic lines.

    The last line that decodes to a JSON array is the payload; every line
    before it is diagnostic.

    Returns:
        ``(payload, diagnostics)``; *payload* is ``None`` when no line decodes.
    """
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    for index in range(len(lines) - 1, -1, -1):
        candidate = lines[index]
        if not candidate.startswith("["):
            continue
        try:
            decoded = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(decoded, list):
            return decoded, lines[:index]
    return None, lines


def _to_entity(raw: Any) -> Optional[ScriptEntity]:
    if not isinstance(raw, dict):
        return None
    entity_type = raw.get("type")
    name = raw.get("name")
    if not isinstance(entity_type, str) or not isinstance(name, str):
        return None
    line = raw.get("line")
    meta = raw.get("meta")
    subtype = raw.get("subtype")
    return ScriptEntity(
        type=entity_type,
        name=name,
        line=line if isinstance(line, int) else 0,
        subtype=subtype if isinstance(subtype, str) else None,
        meta=meta if isinstance(meta, dict) else {},
    )


class ExternalScriptParser(ScriptParser):
    """Runs a separate extractor process per script.

    Failures never propagate: a timeout, a non-zero exit status or output
    without a JSON payload yields zero entities and a warning.

    Args:
        command: Extractor command line, defaulting to
            ``settings.script_extractor_command``.
        timeout: Seconds before the process is killed, defaulting to
            ``settings.script_extractor_timeout``.
    """

    def __init__(self, command: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.command = shlex.split(command or settings.script_extractor_command)
        self.timeout = timeout or settings.script_extractor_timeout

    def parse(self, source: str, file_path: str) -> list[ScriptEntity]:
        if not self.command:
            logger.warning("script_extractor_not_configured", file=file_path)
            return []
        try:
            completed = subprocess.run(
                [*self.command, file_path],
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning("script_extractor_timeout", file=file_path, timeout=self.timeout)
            return []
        except OSError as exc:
            logger.warning("script_extractor_failed", file=file_path, error=str(exc))
            return []

        payload, diagnostics = parse_payload(f"{completed.stdout}\n{completed.stderr}")
        for message in diagnostics:
            logger.warning("script_extractor_diagnostic", file=file_path, message=message)

        if completed.returncode != 0:
            logger.warning("script_extractor_exit_status", file=file_path, returncode=completed.returncode)
            return []
        if payload is None:
            logger.warning("script_extractor_no_payload", file=file_path)
            return []

        entities = [entity for entity in map(_to_entity, payload) if entity is not None]
        logger.debug("script_extracted", file=file_path, entities=len(entities))
        return entities
