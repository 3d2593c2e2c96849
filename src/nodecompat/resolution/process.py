"""Out-of-process runner shared by the shell-based oracle and preset provider."""
from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


def run_process(
    args: Sequence[str],
    cwd: str | os.PathLike[str] | None = None,
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
) -> tuple[int, str, str]:
    """Run ``args`` to completion and return ``(returncode, stdout, stderr)``.

    Raises
    ------
    subprocess.TimeoutExpired
        If the process runs longer than ``timeout`` seconds.
    FileNotFoundError
        If the executable does not exist.
    """
    logger.debug("Running %s (cwd=%s)", args[0], cwd)
    p = subprocess.run(
        list(args),
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout,
        env={**os.environ, "NO_COLOR": "1"},
    )
    return p.returncode, (p.stdout or "").strip(), (p.stderr or "").strip()
