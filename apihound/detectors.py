from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .models import SensitiveFinding


@dataclass(frozen=True)
class Rule:
    info_type: str
    pattern: re.Pattern
    risk_score: int


def _rule(info_type: str, regex: str, risk_score: int, flags: int = 0) -> Rule:
    return Rule(info_type, re.compile(regex, flags), risk_score)


# Ordered by presentation only; every rule is evaluated independently.
DEFAULT_RULES: Tuple[Rule, ...] = (
    _rule("Private Key Block", r"-----BEGIN (?:RSA |DSA |EC |OPENSSH |ENCRYPTED |PGP )?PRIVATE KEY(?: BLOCK)?-----", 10),
    _rule("AWS Access Key", r"\b(?:AKIA|ASIA|AGPA|AIDA|AROA|ANPA|ANVA)[0-9A-Z]{16}\b", 9),
    _rule(
        "AWS Secret Key",
        r"aws_?secret_?access_?key[\"']?\s*[:=]\s*[\"']?[A-Za-z0-9/+=]{40}",
        10,
        re.IGNORECASE,
    ),
    _rule("Google API Key", r"\bAIza[0-9A-Za-z_\-]{35}\b", 8),
    _rule("Slack Token", r"\bxox[abposr]-[0-9A-Za-z-]{10,}\b", 8),
    _rule("GitHub Token", r"\bgh[pousr]_[A-Za-z0-9]{36,}\b", 9),
    _rule(
        "Database Connection String",
        r"\b(?:mysql|postgres(?:ql)?|mongodb(?:\+srv)?|redis|amqp|mssql)://[^\s:@/\"']+:[^\s@/\"']+@[^\s\"'<>]+",
        9,
        re.IGNORECASE,
    ),
    _rule("JSON Web Token", r"\beyJ[A-Za-z0-9_-]{8,}\.eyJ[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}", 7),
    _rule("Bearer Token", r"\bBearer\s+[A-Za-z0-9\-._~+/]{20,}=*", 7),
    _rule(
        "Password Field",
        r"[\"']?\b(?:password|passwd|pwd|pass)\b[\"']?\s*[:=]\s*[\"']?[^\"'\s,&}<]{3,}",
        8,
        re.IGNORECASE,
    ),
    _rule(
        "Secret Field",
        r"[\"']?\b(?:secret|secret_key|client_secret|api_key|apikey|api-key|access_token|auth_token)\b[\"']?\s*[:=]\s*[\"']?[^\"'\s,&}<]{6,}",
        7,
        re.IGNORECASE,
    ),
    _rule(
        "Internal IP Address",
        r"\b(?:10\.(?:\d{1,3}\.){2}\d{1,3}|172\.(?:1[6-9]|2\d|3[01])\.\d{1,3}\.\d{1,3}|192\.168\.\d{1,3}\.\d{1,3})\b",
        5,
    ),
    _rule(
        "Internal Hostname",
        r"\b[a-z0-9][a-z0-9-]*(?:\.[a-z0-9-]+)*\.(?:internal|intranet|corp|local|lan)\b",
        4,
        re.IGNORECASE,
    ),
    _rule("Internal Email", r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", 3),
)


class Detector:
    """Applies a fixed rule set to response bodies.

    Holds no per-call state, so a single instance is shared by all scan workers.
    """

    def __init__(self, rules: Optional[Iterable[Rule]] = None):
        self._rules: Tuple[Rule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def detect(self, url: str, body: str) -> List[SensitiveFinding]:
        findings: List[SensitiveFinding] = []
        if not body:
            return findings
        for rule in self._rules:
            for match in rule.pattern.finditer(body):
                findings.append(
                    SensitiveFinding(
                        url=url,
                        info_type=rule.info_type,
                        risk_score=rule.risk_score,
                        evidence=_redact(match.group(0)),
                    )
                )
        return findings


_default_detector = Detector()


def detect(url: str, body: str) -> List[SensitiveFinding]:
    return _default_detector.detect(url, body)


def _redact(text: str, keep: int = 4, n: int = 80) -> str:
    text = text.strip()
    if len(text) > n:
        text = text[:n] + "…"
    if len(text) <= keep * 2:
        return text
    return text[:keep] + "*" * min(len(text) - keep * 2, 16) + text[-keep:]
