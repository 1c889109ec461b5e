"""
Process termination.

The dispatcher ends the process only through a Lifecycle so tests can
swap in a recorder instead of exiting.
"""

import logging
import os
import sys
from abc import ABC, abstractmethod


logger = logging.getLogger(__name__)


class Lifecycle(ABC):
    """Ends the server process."""

    @abstractmethod
    def exit(self, code: int = 0) -> None:
        pass


class ProcessLifecycle(Lifecycle):
    """
    Exit the interpreter immediately.

    The stdin reader blocks in an executor thread, so a normal interpreter
    shutdown would wait on it forever; streams are flushed and the process
    leaves through os._exit instead.
    """

    def exit(self, code: int = 0) -> None:
        logger.info(f"Exiting with code {code}")
        logging.shutdown()
        for stream in (sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (OSError, ValueError):
                pass
        os._exit(code)
