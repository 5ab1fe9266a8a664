"""FastAPI route definitions for the analyzer API.

- ``POST /analyze``: analyze a plugin directory and return its graph
  document, optionally with generated descriptions and a copy written to
  disk.
"""

from __future__ import annotations

import asyncio
import pathlib
from typing import Any

from pydantic import BaseModel, Field

from fastapi import APIRouter, HTTPException, status

from plugin_profiler.config import settings
from plugin_profiler.core.analysis import analyze_plugin
from plugin_profiler.graph.exporter import export_json, to_export_dict
from plugin_profiler.llm.client import OpenAICompatibleClient
from plugin_profiler.llm.descriptions import DescriptionGenerator
from plugin_profiler.models.graph import Graph

router = APIRouter()


# ------------------------------------------------------------------
# Request schema
# ------------------------------------------------------------------


class AnalyzeRequest(BaseModel):
    """Payload for the ``/analyze`` endpoint.

    Attributes:
        path: Local path to the plugin root directory.
        blacklist: Optional glob patterns replacing the default blacklist.
        script_parser: Script extraction strategy override.
        descriptions: Generate natural-language descriptions for each node.
        output: Optional file the graph document is also written to.
    """

    path: str = Field(..., description="Local path to the plugin root.")
    blacklist: list[str] | None = Field(None, description="Optional glob patterns to exclude.")
    script_parser: str | None = Field(None, description="Script extraction strategy (native or external).")
    descriptions: bool = Field(False, description="Generate node descriptions with the configured LLM provider.")
    output: str | None = Field(None, description="Optional path to write the graph JSON to.")


def _describe(graph: Graph) -> int:
    generator = DescriptionGenerator(OpenAICompatibleClient.for_provider())
    return generator.generate(graph)


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------


@router.post(
    "/analyze",
    status_code=status.HTTP_200_OK,
    summary="Analyze a WordPress plugin",
    description=(
        "Scan a local plugin directory, extract PHP, JavaScript and block.json "
        "entities with tree-sitter, and return the Cytoscape-style graph document."
    ),
)
async def analyze(request: AnalyzeRequest) -> dict[str, Any]:
    """Analyze a plugin and return its graph document.

    Analysis runs in a worker thread so the event loop stays free.

    Raises:
        HTTPException: 400 if the path or options are invalid, 500 on
            unexpected errors.
    """
    try:
        graph = await asyncio.to_thread(
            analyze_plugin,
            request.path,
            request.blacklist,
            request.script_parser,
        )
    except (FileNotFoundError, NotADirectoryError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Analysis failed: {exc}",
        )

    if request.descriptions:
        await asyncio.to_thread(_describe, graph)

    if request.output:
        output_path = pathlib.Path(request.output)
        if not output_path.is_absolute():
            output_path = pathlib.Path(settings.output_dir) / output_path
        try:
            await asyncio.to_thread(export_json, graph, output_path)
        except OSError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Could not write graph: {exc}",
            )

    return to_export_dict(graph)
