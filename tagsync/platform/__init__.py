"""Platform layer: subprocess execution and host detection."""

from tagsync.platform.detection import Host, detect_host, detect_machine
from tagsync.platform.process import ProcessError, run

__all__ = ["Host", "ProcessError", "detect_host", "detect_machine", "run"]
