"""apihound - API path scanner

Probes a single target for live API paths and flags responses that leak
sensitive information. Designed to be used as both a script and a library.
"""

from .detectors import Detector, detect
from .scanner import run_scan, scan_async

__all__ = ["Detector", "detect", "run_scan", "scan_async"]
__version__ = "0.1.0"
