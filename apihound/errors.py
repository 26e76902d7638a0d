from __future__ import annotations


class ScanError(Exception):
    """Base class for errors that abort a scan run."""


class ConfigError(ScanError):
    """Invalid operator configuration, raised before any network activity."""


class UserAgentsExhausted(ScanError):
    def __init__(self, attempts: int):
        super().__init__(f"All {attempts} User-Agent candidates were rejected by the target")
        self.attempts = attempts


class ReportError(ScanError):
    """The scan completed but the report could not be persisted."""
