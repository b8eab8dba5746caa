"""npm script runner locked to the sandbox root.

Commands are executed as argument lists (never through a shell) with the
store root as working directory and a hard timeout.
"""

from __future__ import annotations

import json
import re
import subprocess
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import structlog

from agentfs.domain.errors import InvalidArgumentError, NotFoundError
from agentfs.infrastructure.storage.file_store import FileStore

logger = structlog.get_logger()

_PACKAGE_SPEC_RE = re.compile(
    r"^(?:@[A-Za-z0-9][\w.\-]*/)?[A-Za-z0-9][\w.\-]*(?:@[\w.^~<>=*|\-]+)?$"
)
_SCRIPT_NAME_RE = re.compile(r"^[A-Za-z0-9][\w:.\-]*$")
_PACKAGE_JSON = "package.json"
# package.json is read whole; the store's default read limit targets agent output
_PACKAGE_JSON_MAX_BYTES = 5_000_000


@dataclass(frozen=True)
class ScriptResult:
    """Outcome of one npm invocation.

    Attributes:
        ok: Exit code 0 and no timeout
        command: Argument list that was executed
        exit_code: Process exit code (None when it never finished)
        stdout: Captured standard output
        stderr: Captured standard error
        duration_ms: Wall time in milliseconds
        error: Failure description for timeouts / launch errors
    """

    ok: bool
    command: tuple
    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "ok": self.ok,
            "command": list(self.command),
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "duration_ms": round(self.duration_ms, 1),
        }
        if self.error:
            payload["error"] = self.error
        return payload


def validate_package_spec(spec: str) -> str:
    value = str(spec or "").strip()
    if not _PACKAGE_SPEC_RE.fullmatch(value):
        raise InvalidArgumentError(f"invalid package name: {spec!r}")
    return value


def validate_script_name(name: str) -> str:
    value = str(name or "").strip()
    if not _SCRIPT_NAME_RE.fullmatch(value):
        raise InvalidArgumentError(f"invalid script name: {name!r}")
    return value


class ScriptRunner:
    """Runs ``npm`` inside the root of a :class:`FileStore`."""

    def __init__(
        self,
        store: FileStore,
        *,
        timeout_seconds: int = 300,
        npm_executable: str = "npm",
    ):
        if timeout_seconds <= 0:
            raise InvalidArgumentError("timeout_seconds must be > 0")
        self.store = store
        self.timeout_seconds = timeout_seconds
        self.npm_executable = npm_executable

    def list_scripts(self) -> Dict[str, str]:
        """Return the ``scripts`` table of the project's package.json."""
        raw = self.store.read_text(_PACKAGE_JSON, max_bytes=_PACKAGE_JSON_MAX_BYTES)
        try:
            manifest = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InvalidArgumentError(
                "package.json is not valid JSON",
                path=_PACKAGE_JSON,
                details={"reason": str(exc)},
            ) from exc
        scripts = manifest.get("scripts") if isinstance(manifest, dict) else None
        if not isinstance(scripts, dict):
            return {}
        return {str(name): str(command) for name, command in scripts.items()}

    def install_packages(self, packages: Sequence[str]) -> ScriptResult:
        if isinstance(packages, str):
            packages = [packages]
        specs = [validate_package_spec(item) for item in packages]
        if not specs:
            raise InvalidArgumentError("at least one package is required")
        return self._run([self.npm_executable, "install", *specs])

    def run_script(self, script: str) -> ScriptResult:
        name = validate_script_name(script)
        if name not in self.list_scripts():
            raise NotFoundError("npm script not defined", path=name)
        return self._run([self.npm_executable, "run", name])

    def _run(self, command: List[str]) -> ScriptResult:
        started = time.monotonic()
        logger.info("script_started", command=command, cwd=str(self.store.root))
        try:
            completed = subprocess.run(
                command,
                cwd=str(self.store.root),
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            duration = (time.monotonic() - started) * 1000
            logger.warning("script_timeout", command=command, timeout=self.timeout_seconds)
            return ScriptResult(
                ok=False,
                command=tuple(command),
                exit_code=None,
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr),
                duration_ms=duration,
                error=f"timed out after {self.timeout_seconds}s",
            )
        except OSError as exc:
            duration = (time.monotonic() - started) * 1000
            logger.error("script_launch_failed", command=command, error=str(exc))
            return ScriptResult(
                ok=False,
                command=tuple(command),
                exit_code=None,
                duration_ms=duration,
                error=str(exc),
            )

        duration = (time.monotonic() - started) * 1000
        if completed.stderr:
            logger.warning("script_stderr", command=command, stderr=completed.stderr[-2000:])
        result = ScriptResult(
            ok=completed.returncode == 0,
            command=tuple(command),
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration_ms=duration,
            error="" if completed.returncode == 0 else f"exit code {completed.returncode}",
        )
        logger.info("script_finished", command=command, exit_code=completed.returncode)
        return result


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
