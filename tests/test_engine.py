from collections import Counter

import pytest

from tightrope.engine import Engine
from tightrope.types import AuditRule, ConfigData, Severity


def _config(path, data, line_map=None):
    return ConfigData(file_path=path, format=".yaml", data=data, line_map=line_map or {})


def _by_rule(report, rule):
    return [f for f in report.findings if f.rule == rule]


def test_empty_input_gives_empty_report():
    report = Engine().audit_configs([], "/scan")
    assert report.findings == []
    assert report.files_scanned == 0
    assert report.scan_path == "/scan"
    assert report.summary.total_findings == 0


def test_key_conflict_reported_for_each_file():
    configs = [_config("a.yaml", {"port": 80}), _config("b.yaml", {"port": 81})]
    findings = _by_rule(Engine().audit_configs(configs, "."), AuditRule.KEY_CONFLICT)
    assert sorted(f.file_path for f in findings) == ["a.yaml", "b.yaml"]
    assert all(f.severity == Severity.WARNING for f in findings)
    assert all(f.key == "port" for f in findings)
    assert all("has conflicting values across files" in f.message for f in findings)


def test_identical_values_are_not_conflicts():
    configs = [_config("a.yaml", {"port": 80}), _config("b.yaml", {"port": 80})]
    report = Engine().audit_configs(configs, ".")
    assert _by_rule(report, AuditRule.KEY_CONFLICT) == []


def test_redundant_values_reported():
    configs = [_config("a.yaml", {"host": "localhost"}), _config("b.yaml", {"host": "localhost"})]
    findings = _by_rule(Engine().audit_configs(configs, "."), AuditRule.REDUNDANT)
    assert len(findings) == 2
    assert all(f.severity == Severity.INFO for f in findings)
    assert all(f.key == "host" and f.value == "localhost" for f in findings)
    assert all(
        f.message == "Redundant key-value pair 'host=localhost' found in multiple files"
        for f in findings
    )


def test_nested_keys_are_flattened_for_redundancy():
    configs = [
        _config("a.yaml", {"server": {"host": "localhost"}}),
        _config("b.yaml", {"server": {"host": "localhost"}}),
    ]
    findings = _by_rule(Engine().audit_configs(configs, "."), AuditRule.REDUNDANT)
    assert {f.key for f in findings} == {"server.host"}


def test_secret_in_plain_text_is_critical():
    configs = [_config("a.yaml", {"database": {"password": "placeholder"}}, {"database.password": 3})]
    findings = _by_rule(Engine().audit_configs(configs, "."), AuditRule.SECRETS_IN_PLAIN)
    assert len(findings) == 1
    assert findings[0].severity == Severity.CRITICAL
    assert findings[0].key == "database.password"
    assert findings[0].line_number == 3
    assert findings[0].message == "Potential secret in plain text: database.password"


def test_secret_placeholder_is_skipped():
    configs = [_config("a.yaml", {"password": "password", "token": "token", "secret": "secret"})]
    report = Engine().audit_configs(configs, ".")
    assert _by_rule(report, AuditRule.SECRETS_IN_PLAIN) == []


@pytest.mark.parametrize(
    "key, expected",
    [
        ("database.password", True),
        ("API_KEY", True),
        ("auth.token", True),
        ("host", False),
        ("server.port", False),
    ],
)
def test_is_secret_key(key, expected):
    assert Engine().is_secret_key(key) is expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("${VAR}", True),
        ("{{ .Values.x }}", True),
        ("ENV[NAME]", True),
        ("<changeme>", True),
        ("TODO", True),
        ("***", True),
        ("secret", True),
        ("password", True),
        ("token", True),
        ("placeholder", False),
        ("localhost", False),
    ],
)
def test_is_secret_placeholder(value, expected):
    assert Engine().is_secret_placeholder(value) is expected


def test_deprecated_field_detection():
    engine = Engine(deprecated_fields={"group": ["oldField"]})
    assert engine.is_deprecated_field("oldField") is True
    assert engine.is_deprecated_field("spec.oldField") is True
    assert engine.is_deprecated_field("newField") is False


def test_no_deprecated_fields_by_default():
    assert Engine().is_deprecated_field("anything") is False


def test_deprecated_field_finding():
    engine = Engine(deprecated_fields={"group": ["oldField"]})
    configs = [_config("a.yaml", {"spec": {"oldField": 1}})]
    findings = _by_rule(engine.audit_configs(configs, "."), AuditRule.DEPRECATED)
    assert len(findings) == 1
    assert findings[0].key == "spec.oldField"
    assert findings[0].message == "Deprecated field detected: spec.oldField"
    assert findings[0].line_number == -1


@pytest.mark.parametrize(
    "key, value, expected",
    [
        ("apiVersion", "extensions/v1beta1", True),
        ("apiVersion", "apps/v1beta1", True),
        ("apiVersion", "apps/v1beta2", True),
        ("apiVersion", "apps/v1", False),
        ("version", "extensions/v1beta1", False),
    ],
)
def test_is_deprecated_value(key, value, expected):
    assert Engine().is_deprecated_value(key, value) is expected


def test_deprecated_api_version_finding():
    configs = [_config("a.yaml", {"apiVersion": "extensions/v1beta1"}, {"apiVersion": 1})]
    findings = _by_rule(Engine().audit_configs(configs, "."), AuditRule.DEPRECATED)
    assert [(f.key, f.line_number) for f in findings] == [("apiVersion", 1)]


def test_summary_matches_findings():
    configs = [
        _config("a.yaml", {"port": 80, "host": "localhost", "password": "placeholder"}),
        _config("b.yaml", {"port": 81, "host": "localhost"}),
    ]
    report = Engine().audit_configs(configs, ".")
    assert report.files_scanned == 2
    assert report.summary.total_findings == len(report.findings)
    assert report.summary.findings_by_severity == dict(Counter(f.severity for f in report.findings))
    assert report.summary.findings_by_rule == dict(Counter(f.rule for f in report.findings))


def test_line_numbers_from_line_map_per_file():
    configs = [
        _config("a.yaml", {"port": 80}, {"port": 5}),
        _config("b.yaml", {"port": 81}),
    ]
    findings = _by_rule(Engine().audit_configs(configs, "."), AuditRule.KEY_CONFLICT)
    lines = {f.file_path: f.line_number for f in findings}
    assert lines == {"a.yaml": 5, "b.yaml": -1}


def test_report_timestamp_is_timezone_aware():
    report = Engine().audit_configs([_config("a.yaml", {})], ".")
    assert report.timestamp.tzinfo is not None
    assert report.files_scanned == 1