"""
Subprocess Wrapper for FastAPI Environment

This module provides a wrapper for running external tools from async FastAPI
handlers without blocking the event loop. The command runs in the default
thread pool executor with stdout and stderr captured separately.
"""

import subprocess
import asyncio
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class FastAPISubprocessWrapper:
    """
    Wrapper for subprocess execution in FastAPI environment

    A non-zero exit is returned to the caller, not raised.
    """

    async def run_subprocess_async(
        self,
        command: List[str],
        timeout: Optional[float] = None
    ) -> subprocess.CompletedProcess:
        """
        Run subprocess asynchronously in the default executor

        Args:
            command: Command to execute
            timeout: Deadline in seconds; the child is killed when it expires

        Returns:
            CompletedProcess result with text stdout/stderr

        Raises:
            subprocess.TimeoutExpired: If the deadline passes
            OSError: If the executable cannot be started
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: self.run_subprocess_sync(command, timeout=timeout)
        )

    def run_subprocess_sync(
        self,
        command: List[str],
        timeout: Optional[float] = None
    ) -> subprocess.CompletedProcess:
        """
        Run subprocess synchronously

        This is for use in synchronous contexts or when called from
        thread pool executors.
        """
        logger.debug(f"Running command: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                timeout=timeout,
                capture_output=True,
                text=True
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out after {timeout} seconds")
            raise
        except OSError as e:
            logger.error(f"Could not start {command[0]}: {str(e)}")
            raise

        if result.returncode != 0:
            logger.error(f"Command failed with return code {result.returncode}")
            logger.error(f"Stderr: {result.stderr}")
        return result


# Global instance
subprocess_wrapper = FastAPISubprocessWrapper()
