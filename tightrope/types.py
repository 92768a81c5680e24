"""Core data types shared by the parser, audit engine and report generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class Severity(StrEnum):
    """Severity level of an audit finding."""

    INFO = "Info"
    WARNING = "Warning"
    CRITICAL = "Critical"


class AuditRule(StrEnum):
    """The audit rule a finding was raised by."""

    KEY_CONFLICT = "Key Conflict"
    SHADOWING = "Shadowing"
    SECRETS_IN_PLAIN = "Secrets in Plain Text"
    DEPRECATED = "Deprecated Fields"
    REDUNDANT = "Redundant Values"


SUPPORTED_EXTENSIONS: tuple[str, ...] = (".yaml", ".yml", ".json", ".toml")

FORMAT_MARKDOWN = "markdown"
FORMAT_JSON = "json"
FORMAT_HTML = "html"
OUTPUT_FORMATS: tuple[str, ...] = (FORMAT_MARKDOWN, FORMAT_JSON, FORMAT_HTML)


def _rfc3339(moment: datetime) -> str:
    text = moment.isoformat()
    if moment.tzinfo is None:
        return text
    body, offset = text[:-6], text[-6:]
    if "." in body:
        body = body.rstrip("0").rstrip(".")
    return body + ("Z" if offset == "+00:00" else offset)


@dataclass
class ConfigData:
    """A parsed configuration file with the line numbers of its keys."""

    file_path: str
    format: str
    data: dict[str, Any] = field(default_factory=dict)
    line_map: dict[str, int] = field(default_factory=dict)


@dataclass
class ReportEntry:
    """A single audit finding."""

    file_path: str
    line_number: int
    rule: AuditRule
    message: str
    recommendation: str
    severity: Severity
    key: str = ""
    value: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping; empty key and value are left out."""
        result: dict[str, Any] = {
            "file_path": self.file_path,
            "line_number": self.line_number,
            "rule": str(self.rule),
            "message": self.message,
            "recommendation": self.recommendation,
            "severity": str(self.severity),
        }
        if self.key:
            result["key"] = self.key
        if self.value:
            result["value"] = self.value
        return result


@dataclass
class ReportSummary:
    """Counts of findings by severity and by rule."""

    total_findings: int = 0
    findings_by_severity: dict[Severity, int] = field(default_factory=dict)
    findings_by_rule: dict[AuditRule, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping."""
        return {
            "total_findings": self.total_findings,
            "findings_by_severity": {str(k): v for k, v in self.findings_by_severity.items()},
            "findings_by_rule": {str(k): v for k, v in self.findings_by_rule.items()},
        }


@dataclass
class AuditReport:
    """Everything found by one audit run."""

    timestamp: datetime = field(default_factory=lambda: datetime.now().astimezone())
    scan_path: str = ""
    files_scanned: int = 0
    findings: list[ReportEntry] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping."""
        return {
            "timestamp": _rfc3339(self.timestamp),
            "scan_path": self.scan_path,
            "files_scanned": self.files_scanned,
            "findings": [finding.to_dict() for finding in self.findings],
            "summary": self.summary.to_dict(),
        }


@dataclass
class AuditConfig:
    """Settings for an audit run."""

    scan_path: str = "."
    output_format: str = FORMAT_MARKDOWN
    include_secrets: bool = False
    custom_rules: list[str] = field(default_factory=list)