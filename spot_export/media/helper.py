"""
Runs the external tagging helper, streaming decrypted audio to its stdin.
"""

import asyncio
import logging
from dataclasses import dataclass

from spot_export.exceptions import HelperFailedError

log = logging.getLogger(__name__)


@dataclass
class HelperResult:
    """Outcome of one helper invocation."""

    returncode: int
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


async def run_helper(helper_path: str, args: list[str], payload: bytes) -> HelperResult:
    """
    Launches the helper with positional `args`, writes the whole payload to its
    stdin, closes it and waits for exit.

    stdin is fully drained before waiting so a full pipe buffer cannot
    deadlock the helper. If writing fails or the caller is cancelled, the
    process is killed and reaped before the error propagates.

    Raises:
        HelperFailedError: If the helper cannot be launched.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            helper_path,
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise HelperFailedError(f"Could not run helper '{helper_path}': {e}") from e

    try:
        _, stderr = await process.communicate(input=payload)
    except BaseException:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    stderr_text = (stderr or b"").decode("utf-8", errors="replace").strip()
    if stderr_text:
        log.debug(f"Helper stderr: {stderr_text}")
    return HelperResult(returncode=process.returncode, stderr=stderr_text)
