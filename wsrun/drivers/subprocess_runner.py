"""Process runner backed by :func:`asyncio.create_subprocess_exec`."""

import asyncio
import shlex
from collections.abc import Sequence
from pathlib import Path

from wsrun.logging import get_logger

logger = get_logger(__name__)

# Shell conventions for "command not found" and "found but not executable"
EXIT_COMMAND_NOT_FOUND = 127
EXIT_CANNOT_EXECUTE = 126


def build_command(runner: str, script: str) -> list[str]:
    """Split the runner prefix and append the script name.

    Examples
    --------
    >>> build_command("bun run", "build")
    ['bun', 'run', 'build']
    >>> build_command("npm run --if-present", "test")
    ['npm', 'run', '--if-present', 'test']
    """
    return [*shlex.split(runner), script]


class SubprocessRunner:
    """Spawns each command as a child process with inherited stdio.

    No timeout is applied and running processes are never killed by wsrun.
    """

    async def run(self, command: Sequence[str], cwd: Path) -> int:
        try:
            process = await asyncio.create_subprocess_exec(*command, cwd=cwd)
        except FileNotFoundError as e:
            logger.error("Cannot start {cmd} in {cwd}: {err}", cmd=command[0], cwd=cwd, err=e)
            return EXIT_COMMAND_NOT_FOUND
        except OSError as e:
            logger.error("Cannot execute {cmd} in {cwd}: {err}", cmd=command[0], cwd=cwd, err=e)
            return EXIT_CANNOT_EXECUTE

        return await process.wait()
