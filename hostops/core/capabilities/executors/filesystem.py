"""
Filesystem executor

Capabilities:
- fs-ls: Directory listing (ls -la)
- fs-pwd: Current working directory
- fs-cat: File contents
- fs-find: Find files by name pattern

All four are read-only.
"""

import logging
from typing import Any, Dict, List

from hostops.core.capabilities.exceptions import ValidationError
from hostops.core.capabilities.executors.base import CapabilityExecutor, string_param
from hostops.core.capabilities.models import CapabilityCall, CapabilityDefinition, InvocationContext

logger = logging.getLogger(__name__)


class FileSystemExecutor(CapabilityExecutor):
    """Read-only filesystem queries"""

    kind = "filesystem"

    def definitions(self) -> List[CapabilityDefinition]:
        return [
            CapabilityDefinition(
                name="fs-ls",
                description="List directory contents",
                parameters=[
                    string_param("path", "Directory to list (default: current directory)",
                                 default=".", path_like=True),
                ],
                timeout_seconds=10,
            ),
            CapabilityDefinition(
                name="fs-pwd",
                description="Show the current working directory",
                timeout_seconds=5,
            ),
            CapabilityDefinition(
                name="fs-cat",
                description="Show file contents",
                parameters=[
                    string_param("path", "File to read", required=True, path_like=True),
                ],
                timeout_seconds=10,
            ),
            CapabilityDefinition(
                name="fs-find",
                description="Find files by name pattern",
                parameters=[
                    string_param("path", "Directory to search (default: current directory)",
                                 default=".", path_like=True),
                    string_param("pattern", "File name pattern, e.g. '*.py' (default: '*')",
                                 default="*"),
                ],
                timeout_seconds=30,
            ),
        ]

    def invoke(self, call: CapabilityCall, arguments: Dict[str, Any],
               context: InvocationContext) -> Dict[str, Any]:
        if call.name == "fs-ls":
            return self._ls(arguments["path"], context)
        if call.name == "fs-pwd":
            return self._pwd(context)
        if call.name == "fs-cat":
            return self._cat(arguments["path"], context)
        if call.name == "fs-find":
            return self._find(arguments["path"], arguments["pattern"], context)
        raise KeyError(call.name)

    def _ls(self, path: str, context: InvocationContext) -> Dict[str, Any]:
        result = self.run("ls", ["-la", path], context)
        return {"path": path, "output": result.stdout, "success": True}

    def _pwd(self, context: InvocationContext) -> Dict[str, Any]:
        result = self.run("pwd", [], context)
        return {"current_directory": result.stdout.strip(), "success": True}

    def _cat(self, path: str, context: InvocationContext) -> Dict[str, Any]:
        result = self.run("cat", [path], context)
        return {"path": path, "content": result.stdout, "success": True}

    def _find(self, path: str, pattern: str, context: InvocationContext) -> Dict[str, Any]:
        if not pattern or pattern.startswith("-") or "/" in pattern:
            raise ValidationError(f"Invalid file name pattern: {pattern!r}")
        result = self.run("find", [path, "-name", pattern], context)
        files = sorted(line for line in result.stdout.splitlines() if line)
        return {"path": path, "pattern": pattern, "files": files, "success": True}
