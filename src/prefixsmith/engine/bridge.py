"""Runs the bundled Node.js helper that hosts postcss and autoprefixer."""

import asyncio
import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Optional

from ..errors import BridgeError

logger = logging.getLogger(__name__)

IS_OSX = platform.system() == "Darwin"

SCRIPT_PATH = Path(__file__).resolve().parent.parent / "js" / "prefixer.js"


class NodeBridge:
    """One JSON request in on stdin, one JSON response out on stdout."""

    def __init__(self, node_path: str = "node", script_path: Optional[Path] = None):
        self.node_path = node_path
        self.script_path = Path(script_path) if script_path else SCRIPT_PATH

    def _env(self) -> Optional[dict[str, str]]:
        if not IS_OSX:
            return None
        # GUI apps on macOS don't inherit the shell's PATH
        env = os.environ.copy()
        env["PATH"] = env.get("PATH", "") + ":/usr/local/bin"
        return env

    async def call(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Send ``payload`` to the helper and return its decoded response.

        Raises:
            BridgeError: Node is missing, crashed or produced invalid JSON
        """
        data = json.dumps(payload).encode("utf-8")
        try:
            process = await asyncio.create_subprocess_exec(
                self.node_path,
                str(self.script_path),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env(),
            )
        except OSError as e:
            raise BridgeError(
                f"Couldn't find Node.js ({self.node_path}). Make sure it's in your "
                "$PATH by running `node -v` in your command-line."
            ) from e

        stdout, stderr = await process.communicate(input=data)
        out = stdout.decode("utf-8")
        err = stderr.decode("utf-8").strip()

        if process.returncode != 0 and not out.strip():
            if "MODULE_NOT_FOUND" in err or "Cannot find module" in err:
                logger.debug(f"node stderr: {err}")
                raise BridgeError(
                    "The prefixer helper's npm packages are missing; run "
                    f"`prefixsmith install-helper` or `npm install` in {self.script_path.parent}"
                )
            raise BridgeError(f"Error: {err or f'node exited with {process.returncode}'}")
        if err:
            logger.debug(f"node stderr: {err}")

        try:
            response = json.loads(out)
        except json.JSONDecodeError as e:
            raise BridgeError(f"Invalid response from prefixer helper: {out[:200]!r}") from e
        if not isinstance(response, dict):
            raise BridgeError(f"Invalid response from prefixer helper: {out[:200]!r}")
        return response

    async def install(self, npm_path: str = "npm") -> None:
        """
        Install the helper's npm packages next to its script.

        Raises:
            BridgeError: npm is missing or the install failed
        """
        js_dir = self.script_path.parent
        logger.info(f"Installing prefixer helper packages into {js_dir}")
        try:
            process = await asyncio.create_subprocess_exec(
                npm_path,
                "install",
                "--omit=dev",
                "--prefix",
                str(js_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env(),
            )
        except OSError as e:
            raise BridgeError(
                f"Couldn't find npm ({npm_path}). It ships with Node.js; make sure it's "
                "in your $PATH by running `npm -v` in your command-line."
            ) from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            err = stderr.decode("utf-8").strip()
            raise BridgeError(f"npm install failed: {err or f'npm exited with {process.returncode}'}")
        logger.debug(f"npm output: {stdout.decode('utf-8').strip()}")
