"""Tool catalogue and the boundary where every failure becomes a ToolResult."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ....domain.errors import ErrorKind, SessionError
from ..dtos import (
    SessionEndDTO,
    SessionFetchDTO,
    SessionStartDTO,
    SessionStatusDTO,
    ToolDescriptorDTO,
    ToolResult,
    X402PayDTO,
)
from ..formatting import render_session_error
from .pay import PayToolService
from .session_tools import SessionToolService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[Any], Awaitable[ToolResult]]

    def descriptor(self) -> ToolDescriptorDTO:
        return ToolDescriptorDTO(
            name=self.name,
            description=self.description,
            input_schema=self.input_model.model_json_schema(),
        )


def _format_validation_error(e: ValidationError) -> str:
    lines = []
    for err in e.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "arguments"
        lines.append(f"  {loc}: {err['msg']}")
    return "\n".join(lines)


class ToolRegistry:
    """Lists the tools and dispatches calls to them by name."""

    def __init__(self, pay_service: PayToolService, session_service: SessionToolService):
        tools = [
            Tool(
                "x402_pay",
                "Fetch a URL and handle HTTP 402 Payment Required automatically. "
                "If an active session covers the URL its token is used instead of "
                "paying again. Otherwise the agent wallet pays and retries, subject "
                "to max_payment_eth. Tip: use x402_session_start to pay once for "
                "repeated calls.",
                X402PayDTO,
                pay_service.pay,
            ),
            Tool(
                "x402_session_start",
                "Make a single payment to an endpoint and receive a signed session "
                "token. Later calls covered by the session go through "
                "x402_session_fetch without further payments. Returns a session_id.",
                SessionStartDTO,
                session_service.start,
            ),
            Tool(
                "x402_session_fetch",
                "Make an HTTP request within an established session. The signed "
                "session headers are attached automatically and no payment is made. "
                "Fails if the session expired or the URL is outside its scope.",
                SessionFetchDTO,
                session_service.fetch,
            ),
            Tool(
                "x402_session_status",
                "Without arguments, list active sessions with TTL remaining. With a "
                "session_id, show full details including call count, payment info "
                "and token metadata.",
                SessionStatusDTO,
                session_service.status,
            ),
            Tool(
                "x402_session_end",
                "Close a session before it expires. Later fetches through it fail.",
                SessionEndDTO,
                session_service.end,
            ),
        ]
        self._tools = {tool.name: tool for tool in tools}

    def names(self) -> List[str]:
        return list(self._tools)

    def has(self, name: str) -> bool:
        return name in self._tools

    def list_tools(self) -> List[ToolDescriptorDTO]:
        return [tool.descriptor() for tool in self._tools.values()]

    async def call(self, name: str, arguments: Optional[dict[str, Any]] = None) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.failure(
                f"❌ Unknown tool: {name}. Available tools: {', '.join(self.names())}",
                ErrorKind.INVALID_INPUT,
            )

        try:
            dto = tool.input_model.model_validate(arguments or {})
        except ValidationError as e:
            return ToolResult.failure(
                f"❌ {name} failed: invalid input\n{_format_validation_error(e)}",
                ErrorKind.INVALID_INPUT,
            )

        try:
            return await tool.handler(dto)
        except SessionError as e:
            logger.info("%s failed with %s: %s", name, e.kind.value, e)
            return ToolResult.failure(render_session_error(e, name), e.kind)
        except Exception as e:
            logger.exception("Unexpected error in %s", name)
            return ToolResult.failure(f"❌ {name} failed: {e}", ErrorKind.INTERNAL)
