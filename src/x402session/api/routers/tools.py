"""Tool API routes."""

from __future__ import annotations

import time
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status
from prometheus_client import Counter, Histogram

from ...application.session.dtos import ToolDescriptorDTO, ToolResult
from ...application.session.use_cases.registry import ToolRegistry
from ..dependencies import get_tool_registry

router = APIRouter(prefix="/tools", tags=["tools"])


session_tool_calls_total = Counter(
    "session_tool_calls_total",
    "Total tool calls processed",
    ["tool", "status"],
)

session_tool_call_duration_seconds = Histogram(
    "session_tool_call_duration_seconds",
    "Wall time to process a tool call",
    ["tool", "status"],
)


@router.get("", response_model=list[ToolDescriptorDTO])
async def list_tools(
    registry: ToolRegistry = Depends(get_tool_registry),
) -> list[ToolDescriptorDTO]:
    """List the available tools and their input schemas."""
    return registry.list_tools()


@router.post("/{name}", response_model=ToolResult)
async def call_tool(
    name: str = Path(..., description="Tool name"),
    arguments: Optional[dict[str, Any]] = Body(None),
    registry: ToolRegistry = Depends(get_tool_registry),
) -> ToolResult:
    """Call a tool. Tool failures are reported in the result, not as HTTP errors."""
    if not registry.has(name):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown tool: {name}. Available tools: {', '.join(registry.names())}",
        )

    start_time = time.perf_counter()
    result = await registry.call(name, arguments)
    outcome = result.error.value if result.error else "success"
    session_tool_calls_total.labels(tool=name, status=outcome).inc()
    elapsed = time.perf_counter() - start_time
    session_tool_call_duration_seconds.labels(tool=name, status=outcome).observe(elapsed)
    return result
