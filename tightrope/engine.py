"""The audit engine: applies every audit rule to a set of parsed configurations."""

from __future__ import annotations

import logging
import re
from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from tightrope.parser import flatten_map, get_string_value
from tightrope.types import AuditReport, AuditRule, ConfigData, ReportEntry, ReportSummary, Severity

logger = logging.getLogger(__name__)

_UNKNOWN_LINE = -1

_SENSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(rf"(?i)({names})\s*[:=]\s*['\"]?[^'\"\s]+['\"]?")
    for names in (
        "password|passwd|pwd",
        "token|auth_token|bearer_token",
        "api_key|apikey|key",
        "secret|secret_key",
        "access_key|private_key",
        "oauth_token|jwt_secret",
        "database_password|db_password",
    )
)

_SENSITIVE_WORDS: tuple[str, ...] = (
    "password", "passwd", "pwd", "secret", "token", "key", "api_key", "apikey",
    "private_key", "access_key", "secret_key", "auth_token", "bearer_token",
    "oauth_token", "jwt_secret", "database_password", "db_password",
)

_PLACEHOLDER_MARKERS: tuple[str, ...] = ("${", "{{", "ENV[", "<", "TODO", "FIXME", "***", "...")
_PLACEHOLDER_WORDS: frozenset[str] = frozenset({"secret", "password", "token"})

_DEPRECATED_API_VERSIONS: frozenset[str] = frozenset(
    {"extensions/v1beta1", "apps/v1beta1", "apps/v1beta2"}
)

_DEPRECATED_RECOMMENDATION = (
    "Update to use the recommended replacement field or remove if no longer needed"
)


def _line_number(configs: Iterable[ConfigData], file_path: str, key: str) -> int:
    for config in configs:
        if config.file_path == file_path and key in config.line_map:
            return config.line_map[key]
    return _UNKNOWN_LINE


class Engine:
    """Audits parsed configuration files for common problems."""

    def __init__(self, deprecated_fields: Mapping[str, Iterable[str]] | None = None) -> None:
        self.deprecated_fields: dict[str, list[str]] = {
            group: list(fields) for group, fields in (deprecated_fields or {}).items()
        }

    def audit_configs(self, configs: Sequence[ConfigData], scan_path: str) -> AuditReport:
        """Run every rule over the configurations and return the report."""
        report = AuditReport(
            timestamp=datetime.now().astimezone(),
            scan_path=scan_path,
            files_scanned=len(configs),
        )
        findings = report.findings
        findings.extend(self._key_conflicts(configs))
        findings.extend(self._shadowing(configs))
        findings.extend(self._secrets_in_plain(configs))
        findings.extend(self._deprecated_fields(configs))
        findings.extend(self._redundant_values(configs))

        report.summary = ReportSummary(
            total_findings=len(findings),
            findings_by_severity=dict(Counter(f.severity for f in findings)),
            findings_by_rule=dict(Counter(f.rule for f in findings)),
        )
        logger.info(
            "Audit completed: %d findings in %d files", len(findings), report.files_scanned
        )
        return report

    def _key_conflicts(self, configs: Sequence[ConfigData]) -> Iterable[ReportEntry]:
        key_values: dict[str, dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))
        for config in configs:
            for key, value in flatten_map(config.data, "").items():
                key_values[key][get_string_value(value)].append(config.file_path)

        for key, values in key_values.items():
            if len(values) <= 1:
                continue
            listed = "[" + " ".join(values) + "]"
            for file_path in (path for files in values.values() for path in files):
                yield ReportEntry(
                    file_path=file_path,
                    line_number=_line_number(configs, file_path, key),
                    rule=AuditRule.KEY_CONFLICT,
                    message=f"Key '{key}' has conflicting values across files: {listed}",
                    recommendation=(
                        "Consolidate conflicting keys or use environment-specific "
                        "configuration files"
                    ),
                    severity=Severity.WARNING,
                    key=key,
                )

    def _shadowing(self, configs: Sequence[ConfigData]) -> Iterable[ReportEntry]:
        for config in configs:
            yield from self._shadowing_in_map(config.data, "", config)

    def _shadowing_in_map(
        self, data: Mapping[str, Any], prefix: str, config: ConfigData
    ) -> Iterable[ReportEntry]:
        seen: set[str] = set()
        for key, value in data.items():
            current_key = f"{prefix}.{key}" if prefix else key
            if key in seen:
                yield ReportEntry(
                    file_path=config.file_path,
                    line_number=_line_number([config], config.file_path, current_key),
                    rule=AuditRule.SHADOWING,
                    message=f"Key '{key}' shadows another key in the same scope",
                    recommendation="Rename one of the conflicting keys to avoid shadowing",
                    severity=Severity.WARNING,
                    key=current_key,
                )
            seen.add(key)
            if isinstance(value, dict):
                yield from self._shadowing_in_map(value, current_key, config)

    def _secrets_in_plain(self, configs: Sequence[ConfigData]) -> Iterable[ReportEntry]:
        for config in configs:
            for key, value in flatten_map(config.data, "").items():
                value_str = get_string_value(value)
                if self.is_secret_placeholder(value_str):
                    continue
                sensitive_name = self.is_secret_key(key)
                line = f"{key}: {value_str}"
                if not sensitive_name and not any(p.search(line) for p in _SENSITIVE_PATTERNS):
                    continue
                message = (
                    f"Potential secret in plain text: {key}"
                    if sensitive_name
                    else f"Pattern suggests secret in plain text: {key}"
                )
                yield ReportEntry(
                    file_path=config.file_path,
                    line_number=_line_number([config], config.file_path, key),
                    rule=AuditRule.SECRETS_IN_PLAIN,
                    message=message,
                    recommendation=(
                        "Use environment variables, secret management systems, "
                        "or encrypted storage"
                    ),
                    severity=Severity.CRITICAL,
                    key=key,
                )

    def _deprecated_fields(self, configs: Sequence[ConfigData]) -> Iterable[ReportEntry]:
        for config in configs:
            for key, value in flatten_map(config.data, "").items():
                hits = int(self.is_deprecated_field(key)) + int(self.is_deprecated_value(key, value))
                for _ in range(hits):
                    yield ReportEntry(
                        file_path=config.file_path,
                        line_number=_line_number([config], config.file_path, key),
                        rule=AuditRule.DEPRECATED,
                        message=f"Deprecated field detected: {key}",
                        recommendation=_DEPRECATED_RECOMMENDATION,
                        severity=Severity.WARNING,
                        key=key,
                    )

    def _redundant_values(self, configs: Sequence[ConfigData]) -> Iterable[ReportEntry]:
        pair_files: dict[str, list[str]] = defaultdict(list)
        for config in configs:
            for key, value in flatten_map(config.data, "").items():
                pair_files[f"{key}={get_string_value(value)}"].append(config.file_path)

        for pair, files in pair_files.items():
            if len(files) <= 1:
                continue
            key, sep, value = pair.partition("=")
            if not sep:
                continue
            for file_path in files:
                yield ReportEntry(
                    file_path=file_path,
                    line_number=_line_number(configs, file_path, key),
                    rule=AuditRule.REDUNDANT,
                    message=f"Redundant key-value pair '{pair}' found in multiple files",
                    recommendation="Consider consolidating common configurations into a shared file",
                    severity=Severity.INFO,
                    key=key,
                    value=value,
                )

    def is_secret_key(self, key: str) -> bool:
        """Whether the key name suggests it holds a secret."""
        lower = key.lower()
        return any(word in lower for word in _SENSITIVE_WORDS)

    def is_secret_placeholder(self, value: str) -> bool:
        """Whether the value is a placeholder rather than a real secret."""
        if any(marker in value for marker in _PLACEHOLDER_MARKERS):
            return True
        return len(value.encode("utf-8")) < 8 and value in _PLACEHOLDER_WORDS

    def is_deprecated_field(self, key: str) -> bool:
        """Whether the key matches or contains a known deprecated field."""
        return any(
            field in key for fields in self.deprecated_fields.values() for field in fields
        )

    def is_deprecated_value(self, key: str, value: Any) -> bool:
        """Whether the value is deprecated for this key, such as an old API version."""
        return key == "apiVersion" and get_string_value(value) in _DEPRECATED_API_VERSIONS