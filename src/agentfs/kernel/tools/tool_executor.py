"""Tool executor for AgentFS.

Maps agent tool calls onto the file store and script runner. Failures are
returned as ``{"ok": False, ...}`` results so the agent sees the message
instead of the host crashing.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog

from agentfs.domain.errors import AgentFSError
from agentfs.infrastructure.storage.file_store import FileStore
from agentfs.kernel.sandbox.script_runner import ScriptRunner
from agentfs.kernel.tools.tool_contract import (
    ToolCategory,
    ToolContract,
    get_tool_contract,
    normalize_tool_args,
    validate_tool_step,
)

logger = structlog.get_logger()


class ToolExecutorError(Exception):
    """A known tool has no handler on the executor."""


class ToolExecutor:
    """Execute tools against one sandboxed store."""

    def __init__(
        self,
        store: FileStore,
        *,
        allow_write: bool = True,
        allow_exec: bool = False,
        runner: Optional[ScriptRunner] = None,
    ):
        """Initialize tool executor.

        Args:
            store: File store all file tools operate on
            allow_write: Whether write tools are allowed
            allow_exec: Whether exec tools (npm install/run) are allowed
            runner: Script runner; built lazily from `store` when omitted
        """
        self.store = store
        self.allow_write = allow_write
        self.allow_exec = allow_exec
        self._runner = runner

    @property
    def runner(self) -> ScriptRunner:
        """Lazy-initialized script runner."""
        if self._runner is None:
            self._runner = ScriptRunner(self.store)
        return self._runner

    def _refusal(self, contract: ToolContract) -> Optional[str]:
        if contract.category is ToolCategory.WRITE and not self.allow_write:
            return "Write tools are not allowed"
        if contract.category is ToolCategory.EXEC and not self.allow_exec:
            return "Exec tools are not allowed"
        return None

    def execute(self, tool: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run one tool call and return its result dict.

        Unknown tools, bad arguments, disabled categories and domain errors
        all come back as ``{"ok": False, "error": ..., "code": ...}``.
        """
        contract = get_tool_contract(tool)
        valid, error_code, error_msg = validate_tool_step(tool, args)
        if contract is None or not valid:
            return {"ok": False, "error": f"[{error_code}] {error_msg}", "code": error_code}

        refusal = self._refusal(contract)
        if refusal is not None:
            logger.info("tool_refused", tool=contract.name, category=contract.category.value)
            return {"ok": False, "error": refusal, "code": "FORBIDDEN"}

        handler = getattr(self, f"_exec_{contract.name}", None)
        if handler is None:
            raise ToolExecutorError(f"tool has no handler: {contract.name}")

        try:
            result = handler(normalize_tool_args(contract.name, args))
        except AgentFSError as exc:
            logger.info("tool_failed", tool=contract.name, code=exc.code, error=str(exc))
            return {**exc.to_dict(), "ok": False}
        except OSError as exc:
            logger.warning("tool_failed", tool=contract.name, code="IOError", error=str(exc))
            return {"ok": False, "error": str(exc), "code": "IOError"}

        logger.debug("tool_executed", tool=contract.name, ok=result.get("ok"))
        return result

    # -------------------------------------------------------------------------
    # File Tools
    # -------------------------------------------------------------------------

    def _exec_fs_list(self, args: Dict[str, Any]) -> Dict[str, Any]:
        entries = self.store.list(str(args.get("dir") or "."))
        return {"ok": True, "entries": [entry.to_dict() for entry in entries]}

    def _exec_fs_read(self, args: Dict[str, Any]) -> Dict[str, Any]:
        content = self.store.read_text(str(args["file"]), args.get("max_bytes"))
        return {"ok": True, "content": content}

    def _exec_fs_write(self, args: Dict[str, Any]) -> Dict[str, Any]:
        result = self.store.write(
            str(args["file"]),
            contents=args.get("contents"),
            patch=args.get("patch"),
            expected_sha256=args.get("expected_sha256"),
        )
        return result.to_dict()

    def _exec_fs_delete(self, args: Dict[str, Any]) -> Dict[str, Any]:
        return self.store.delete(str(args["path"])).to_dict()

    # -------------------------------------------------------------------------
    # npm Tools
    # -------------------------------------------------------------------------

    def _exec_npm_list_scripts(self, args: Dict[str, Any]) -> Dict[str, Any]:
        return {"ok": True, "scripts": self.runner.list_scripts()}

    def _exec_npm_install(self, args: Dict[str, Any]) -> Dict[str, Any]:
        return self.runner.install_packages(args["packages"]).to_dict()

    def _exec_npm_run_script(self, args: Dict[str, Any]) -> Dict[str, Any]:
        return self.runner.run_script(str(args["script"])).to_dict()


def execute_tool(
    tool: str,
    args: Dict[str, Any],
    store: FileStore,
    *,
    allow_write: bool = True,
    allow_exec: bool = False,
) -> Dict[str, Any]:
    """Execute a tool with the given configuration."""
    executor = ToolExecutor(store, allow_write=allow_write, allow_exec=allow_exec)
    return executor.execute(tool, args)
