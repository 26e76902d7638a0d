from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import ConfigError
from .models import ScanTarget

MAX_CONCURRENCY = 100


@dataclass
class ScanConfig:
    target: str
    dictionary: Path = Path("./config/api_dict.txt")
    output: Path = Path("./config/scan_report.json")
    concurrency: int = 20
    timeout: float = 10.0
    proxy: Optional[str] = None
    auth_token: Optional[str] = None
    user_agent_file: Path = Path("./config/user-agents.txt")
    include_paths: Optional[Path] = None
    exclude_paths: Optional[Path] = None
    insecure: bool = False

    def validate(self) -> None:
        """Raise ConfigError on the first invalid setting."""
        if not self.target.startswith(("http://", "https://")):
            raise ConfigError(f"Target must start with http:// or https://: {self.target!r}")
        if not self.dictionary.is_file():
            raise ConfigError(f"Dictionary file not found: {self.dictionary}")
        if not 1 <= self.concurrency <= MAX_CONCURRENCY:
            raise ConfigError(f"Concurrency must be between 1 and {MAX_CONCURRENCY}, got {self.concurrency}")
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")
        if self.auth_token is not None:
            if not self.auth_token.strip():
                raise ConfigError("Auth token must not be blank")
            # Dotted tokens are taken to be JWTs
            if "." in self.auth_token and len(self.auth_token.split(".")) != 3:
                raise ConfigError("Auth token looks like a JWT but does not have three parts")
        if self.proxy is not None and not self.proxy.startswith(("http://", "https://")):
            raise ConfigError(f"Proxy URL must start with http:// or https://: {self.proxy!r}")
        if not self.user_agent_file.is_file():
            raise ConfigError(f"User-Agent file not found: {self.user_agent_file}")
        if self.user_agent_file.stat().st_size == 0:
            raise ConfigError(f"User-Agent file is empty: {self.user_agent_file}")

    def to_target(self, paths: Sequence[str]) -> ScanTarget:
        return ScanTarget(
            base_url=self.target,
            paths=tuple(paths),
            concurrency=self.concurrency,
            timeout=self.timeout,
            auth_token=self.auth_token,
            proxy=self.proxy,
            verify_tls=not self.insecure,
        )


def read_lines(path: Path) -> List[str]:
    """Stripped, non-blank lines of a newline-delimited file."""
    lines = path.read_text(encoding="utf-8").splitlines()
    return [ln.strip() for ln in lines if ln.strip()]


def merge_paths(dictionary: Sequence[str], include: Sequence[str] = (), exclude: Sequence[str] = ()) -> List[str]:
    """(dictionary + include) minus exact exclude matches. Duplicates are kept."""
    excluded = set(exclude)
    return [p for p in [*dictionary, *include] if p not in excluded]


def load_paths(config: ScanConfig) -> List[str]:
    try:
        dictionary = read_lines(config.dictionary)
        include: List[str] = []
        exclude: List[str] = []
        # Missing include/exclude files are ignored
        if config.include_paths is not None and config.include_paths.is_file():
            include = read_lines(config.include_paths)
        if config.exclude_paths is not None and config.exclude_paths.is_file():
            exclude = read_lines(config.exclude_paths)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read path list: {e}") from e
    paths = merge_paths(dictionary, include, exclude)
    if not paths:
        raise ConfigError("Effective path list is empty")
    return paths


def load_user_agents(path: Path) -> List[str]:
    try:
        pool = read_lines(path)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read User-Agent file: {e}") from e
    if not pool:
        raise ConfigError(f"User-Agent file has no entries: {path}")
    return pool
