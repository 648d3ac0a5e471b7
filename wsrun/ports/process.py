"""Port interface for running a package script as a process."""

from abc import abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ProcessRunner(Protocol):
    """Runs a command to completion and reports its exit code.

    The command's standard output and error are inherited from the parent
    process; the runner does not capture them. Waiting for the exit code is
    the only suspension point of a task.

    Implementations:

    - **SubprocessRunner**: spawns a real OS process via asyncio
    - test doubles that record calls and script exit codes
    """

    @abstractmethod
    async def run(self, command: Sequence[str], cwd: Path) -> int:
        """Run ``command`` in ``cwd`` and return its exit code.

        Implementations must not raise for a non-zero exit; failures to
        start the process should be reported as an exit code as well.
        """
        ...
