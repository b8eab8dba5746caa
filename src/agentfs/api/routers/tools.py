"""Tools router - agent tool calls by name."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from agentfs.api.dependencies import get_tool_executor
from agentfs.kernel.tools.tool_contract import list_tool_contracts
from agentfs.kernel.tools.tool_executor import ToolExecutor

router = APIRouter(prefix="/tools", tags=["tools"])


class ToolCallRequest(BaseModel):
    args: Dict[str, Any] = Field(default_factory=dict)


@router.get("")
def list_tools(
    category: Optional[List[str]] = Query(None),
) -> List[Dict[str, Any]]:
    """List tool contracts, optionally filtered by category."""
    return list_tool_contracts(category)


@router.post("/{tool}")
def call_tool(
    tool: str,
    request: ToolCallRequest,
    executor: ToolExecutor = Depends(get_tool_executor),
) -> Dict[str, Any]:
    """Run one tool. Tool failures come back as ``ok: false`` with status 200."""
    return executor.execute(tool, request.args)
