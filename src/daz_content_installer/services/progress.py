"""Progress sink shared by ingest, install and uninstall.

Callbacks receive ``(stage, message, percent)`` and are invoked synchronously
from the running operation.
"""

from collections.abc import Callable

ProgressCallback = Callable[[str, str, int], None]


def noop_progress(_stage: str, _message: str, _percent: int) -> None:
    pass
