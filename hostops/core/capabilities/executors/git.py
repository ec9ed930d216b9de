"""
Version-control executor

Capabilities:
- git-status (read-only)
- git-diff (read-only)
- git-add, git-commit, git-push (mutating)
"""

import logging
from typing import Any, Dict, List

from hostops.core.capabilities.exceptions import ValidationError
from hostops.core.capabilities.executors.base import CapabilityExecutor, bool_param, string_param
from hostops.core.capabilities.models import CapabilityCall, CapabilityDefinition, InvocationContext
from hostops.core.capabilities.runner_base.validation import validate_path, validate_ref

logger = logging.getLogger(__name__)

MAX_COMMIT_MESSAGE = 4096


class GitExecutor(CapabilityExecutor):
    """Git operations on a working tree"""

    kind = "version-control"

    def definitions(self) -> List[CapabilityDefinition]:
        return [
            CapabilityDefinition(
                name="git-status",
                description="Show working tree status",
                parameters=[
                    string_param("path", "Repository path (default: current directory)",
                                 default=".", path_like=True),
                ],
                timeout_seconds=15,
            ),
            CapabilityDefinition(
                name="git-diff",
                description="Show changes in the working tree or index",
                parameters=[
                    string_param("path", "Repository path (default: current directory)",
                                 default=".", path_like=True),
                    bool_param("staged", "Show staged changes instead of unstaged", default=False),
                ],
                timeout_seconds=15,
            ),
            CapabilityDefinition(
                name="git-add",
                description="Add files to the index",
                parameters=[
                    string_param("files", "Whitespace-separated list of paths to add", required=True),
                ],
                read_only=False,
                timeout_seconds=15,
            ),
            CapabilityDefinition(
                name="git-commit",
                description="Record staged changes",
                parameters=[
                    string_param("message", "Commit message", required=True),
                ],
                read_only=False,
                timeout_seconds=30,
            ),
            CapabilityDefinition(
                name="git-push",
                description="Push commits to a remote",
                parameters=[
                    string_param("remote", "Remote name (default: origin)", default="origin"),
                    string_param("branch", "Branch to push (default: HEAD)", default="HEAD"),
                ],
                read_only=False,
                timeout_seconds=60,
            ),
        ]

    def invoke(self, call: CapabilityCall, arguments: Dict[str, Any],
               context: InvocationContext) -> Dict[str, Any]:
        handler = {
            "git-status": self._status,
            "git-diff": self._diff,
            "git-add": self._add,
            "git-commit": self._commit,
            "git-push": self._push,
        }[call.name]
        return handler(arguments, context)

    def _status(self, arguments: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
        path = arguments["path"]
        result = self.run("git", ["-C", path, "status", "--porcelain", "--branch"], context)
        lines = result.stdout.splitlines()
        branch = ""
        if lines and lines[0].startswith("## "):
            branch = lines.pop(0)[3:]
        changes = [{"status": line[:2].strip(), "file": line[3:]} for line in lines if line]
        return {
            "path": path,
            "branch": branch,
            "changes": changes,
            "clean": not changes,
            "success": True,
        }

    def _diff(self, arguments: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
        path = arguments["path"]
        args = ["-C", path, "diff", "--no-color"]
        if arguments["staged"]:
            args.append("--staged")
        result = self.run("git", args, context)
        return {
            "path": path,
            "staged": arguments["staged"],
            "diff": result.stdout,
            "has_changes": bool(result.stdout.strip()),
            "success": True,
        }

    def _add(self, arguments: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
        files = arguments["files"].split()
        if not files:
            raise ValidationError("files must name at least one path")
        for path in files:
            validate_path(path, "files")
        self.run("git", ["add", "--"] + files, context)
        return {"files": files, "success": True}

    def _commit(self, arguments: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
        message = arguments["message"].strip()
        if not message:
            raise ValidationError("Commit message must not be empty")
        if len(message) > MAX_COMMIT_MESSAGE:
            raise ValidationError(f"Commit message exceeds {MAX_COMMIT_MESSAGE} characters")
        result = self.run("git", ["commit", "-m", message], context)
        return {"message": message, "output": result.stdout, "success": True}

    def _push(self, arguments: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
        remote = validate_ref(arguments["remote"], "remote")
        branch = validate_ref(arguments["branch"], "branch")
        result = self.run("git", ["push", remote, branch], context)
        # git reports push progress on stderr
        return {
            "remote": remote,
            "branch": branch,
            "output": (result.stdout + result.stderr).strip(),
            "success": True,
        }
