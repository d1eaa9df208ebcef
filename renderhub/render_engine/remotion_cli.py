"""
Remotion CLI Engine
===================
Drives Remotion through its command line (``remotion bundle``,
``remotion render`` and ``remotion still``).
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from renderhub.common.errors import RenderEngineError
from renderhub.compositions.models import ResolvedComposition
from renderhub.config import runtime_config
from renderhub.render_engine.base import RenderEngine, VideoCodec

logger = logging.getLogger(__name__)

_STDERR_TAIL = 2000


class RemotionCliEngine(RenderEngine):
    def __init__(
        self,
        command: Optional[List[str]] = None,
        cwd: Optional[str | Path] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.command = command or runtime_config.get_remotion_command()
        self.cwd = Path(cwd) if cwd else None
        self.timeout = timeout if timeout is not None else runtime_config.get_engine_timeout()

    async def _run(self, args: List[str]) -> str:
        cmd = [*self.command, *args]
        logger.info(f"[Remotion] Running: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(self.cwd) if self.cwd else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise RenderEngineError(f"Could not start render engine ({cmd[0]}): {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise RenderEngineError(f"Render engine timed out after {self.timeout}s") from exc

        if process.returncode != 0:
            message = (stderr or stdout or b"").decode(errors="replace").strip()
            message = message[-_STDERR_TAIL:] or f"exit code {process.returncode}"
            logger.error(f"[Remotion] Command failed: {message}")
            raise RenderEngineError(message)
        return stdout.decode(errors="replace") if stdout else ""

    async def _run_with_props(self, args: List[str], props: Dict[str, Any]) -> None:
        # Props go through a file so large payloads stay off the command line.
        fd, props_path = tempfile.mkstemp(prefix="renderhub-props-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(props, f)
            await self._run([*args, f"--props={props_path}"])
        finally:
            try:
                os.unlink(props_path)
            except OSError:
                pass

    async def bundle(
        self,
        entry_point: Path,
        config_path: Optional[Path] = None,
        out_dir: Optional[Path] = None,
    ) -> str:
        target = out_dir or Path(tempfile.mkdtemp(prefix="renderhub-bundle-"))
        args = ["bundle", str(entry_point), f"--out-dir={target}"]
        if config_path:
            args.append(f"--config={config_path}")
        started = time.time()
        await self._run(args)
        logger.info(f"[Remotion] Bundle ready at {target} ({time.time() - started:.2f}s)")
        return str(target)

    async def render_media(
        self,
        composition: ResolvedComposition,
        serve_url: str,
        output_path: Path,
        codec: VideoCodec,
        input_props: Dict[str, Any],
    ) -> None:
        args = ["render", serve_url, composition.id, str(output_path), f"--codec={codec}"]
        await self._run_with_props(args, composition.props or input_props)

    async def render_still(
        self,
        composition: ResolvedComposition,
        serve_url: str,
        output_path: Path,
        input_props: Dict[str, Any],
    ) -> None:
        args = ["still", serve_url, composition.id, str(output_path)]
        await self._run_with_props(args, composition.props or input_props)
