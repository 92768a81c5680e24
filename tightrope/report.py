"""Rendering of audit reports as Markdown, JSON or HTML."""

from __future__ import annotations

import json
from collections import defaultdict
from datetime import datetime
from typing import Any

from tightrope.types import (
    FORMAT_HTML,
    FORMAT_JSON,
    FORMAT_MARKDOWN,
    AuditReport,
    ReportEntry,
    Severity,
)

_SEVERITY_EMOJI: dict[str, str] = {
    Severity.CRITICAL: "🚨",
    Severity.WARNING: "⚠️",
    Severity.INFO: "ℹ️",
}
_UNKNOWN_EMOJI = "❓"

_HTML_ESCAPES: dict[str, str] = {
    "\x00": "\ufffd",
    '"': "&#34;",
    "&": "&amp;",
    "'": "&#39;",
    "+": "&#43;",
    "<": "&lt;",
    ">": "&gt;",
}

_JSON_ESCAPES: dict[str, str] = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def severity_emoji(severity: Severity | str) -> str:
    """Return the emoji used for a severity level."""
    return _SEVERITY_EMOJI.get(str(severity), _UNKNOWN_EMOJI)


def _escape_html(value: Any) -> str:
    return "".join(_HTML_ESCAPES.get(char, char) for char in str(value))


def _rfc3339_seconds(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    offset = moment.utcoffset()
    base = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if not offset:
        return base + "Z"
    total = int(offset.total_seconds())
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{base}{sign}{hours:02d}:{minutes:02d}"


def _group_by_file(findings: list[ReportEntry]) -> dict[str, list[ReportEntry]]:
    grouped: dict[str, list[ReportEntry]] = defaultdict(list)
    for finding in findings:
        grouped[finding.file_path].append(finding)
    return dict(grouped)


# Stylesheet palette and shared values.
_ACCENT = "#667eea"
_MUTED = "#6c757d"
_DARK = "#495057"
_LIGHT_BG = "#f8f9fa"
_GREEN = "#28a745"
_SHADOW = "0 2px 10px rgba(0, 0, 0, 0.1)"
_MONO = "'Monaco', 'Menlo', monospace"

# severity class -> (finding background, badge / border colour)
_SEVERITY_COLOURS: dict[str, tuple[str, str]] = {
    "critical": ("#fff5f5", "#e53e3e"),
    "warning": ("#fffbeb", "#f59e0b"),
    "info": ("#f0f9ff", "#3b82f6"),
}


def _css_rules() -> list[tuple[str, dict[str, str]]]:
    rules: list[tuple[str, dict[str, str]]] = [
        ("body", {
            "font-family": "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif",
            "line-height": "1.6",
            "color": "#333",
            "max-width": "1200px",
            "margin": "0 auto",
            "padding": "20px",
            "background-color": _LIGHT_BG,
        }),
        (".header", {
            "background": f"linear-gradient(135deg, {_ACCENT} 0%, #764ba2 100%)",
            "color": "white",
            "padding": "30px",
            "border-radius": "12px",
            "margin-bottom": "30px",
            "box-shadow": "0 4px 6px rgba(0, 0, 0, 0.1)",
        }),
        (".header h1", {"margin": "0 0 15px 0", "font-size": "2.5em"}),
        (".header .meta", {"opacity": "0.9", "font-size": "1.1em"}),
        (".summary", {
            "display": "grid",
            "grid-template-columns": "repeat(auto-fit, minmax(250px, 1fr))",
            "gap": "20px",
            "margin-bottom": "30px",
        }),
        (".summary-card", {
            "background": "white",
            "padding": "25px",
            "border-radius": "12px",
            "box-shadow": _SHADOW,
            "border-left": f"4px solid {_ACCENT}",
        }),
        (".summary-card h3", {"margin": "0 0 15px 0", "color": _ACCENT}),
        (".findings", {
            "background": "white",
            "border-radius": "12px",
            "padding": "30px",
            "box-shadow": _SHADOW,
        }),
        (".file-section", {
            "margin-bottom": "40px",
            "border-bottom": "2px solid #eee",
            "padding-bottom": "30px",
        }),
        (".file-section:last-child", {"border-bottom": "none"}),
        (".file-title", {
            "font-size": "1.4em",
            "color": _DARK,
            "margin-bottom": "20px",
            "padding": "10px",
            "background": _LIGHT_BG,
            "border-radius": "6px",
            "font-family": _MONO,
        }),
        (".finding", {
            "margin-bottom": "25px",
            "padding": "20px",
            "border-radius": "8px",
            "border-left": "4px solid #ddd",
        }),
    ]
    rules.extend(
        (f".finding.{name}", {"background": tint, "border-left-color": colour})
        for name, (tint, colour) in _SEVERITY_COLOURS.items()
    )
    rules.append((".finding-header", {
        "display": "flex",
        "align-items": "center",
        "margin-bottom": "10px",
    }))
    rules.append((".severity-badge", {
        "padding": "4px 12px",
        "border-radius": "20px",
        "font-size": "0.85em",
        "font-weight": "600",
        "margin-right": "10px",
    }))
    rules.extend(
        (f".severity-{name}", {"background": colour, "color": "white"})
        for name, (_, colour) in _SEVERITY_COLOURS.items()
    )
    rules.extend([
        (".finding-rule", {"font-weight": "600", "color": _DARK}),
        (".finding-line", {"color": _MUTED, "font-size": "0.9em"}),
        (".finding-message", {"margin": "15px 0", "font-size": "1.05em"}),
        (".finding-recommendation", {
            "background": _LIGHT_BG,
            "padding": "15px",
            "border-radius": "6px",
            "margin": "15px 0",
            "border-left": f"3px solid {_GREEN}",
        }),
        (".finding-details", {
            "margin-top": "15px",
            "font-family": _MONO,
            "font-size": "0.9em",
            "color": _MUTED,
        }),
        (".no-findings", {"text-align": "center", "padding": "60px 20px", "color": _GREEN}),
        (".no-findings h2", {"font-size": "2em", "margin-bottom": "10px"}),
        (".stats-grid", {
            "display": "grid",
            "grid-template-columns": "repeat(auto-fit, minmax(150px, 1fr))",
            "gap": "15px",
        }),
        (".stat-item", {
            "padding": "10px",
            "background": _LIGHT_BG,
            "border-radius": "6px",
            "text-align": "center",
        }),
        (".stat-count", {"font-size": "1.5em", "font-weight": "600", "color": _ACCENT}),
        (".stat-label", {"font-size": "0.9em", "color": _MUTED}),
        (".footer", {
            "text-align": "center",
            "margin-top": "40px",
            "padding": "20px",
            "color": _MUTED,
            "font-style": "italic",
        }),
    ])
    return rules


def _render_css(rules: list[tuple[str, dict[str, str]]]) -> str:
    pad = " " * 8
    blocks = []
    for selector, props in rules:
        body = "".join(f"{pad}    {name}: {value};\n" for name, value in props.items())
        blocks.append(f"{pad}{selector} {{\n{body}{pad}}}\n")
    return "".join(blocks)


def _html_head() -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '    <meta charset="UTF-8">\n'
        '    <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        "    <title>Tightrope Configuration Audit Report</title>\n"
        "    <style>\n"
        f"{_render_css(_css_rules())}"
        "    </style>\n"
        "</head>\n"
    )


_HTML_HEAD = _html_head()

_HTML_FOOTER = (
    "\n"
    '    <div class="footer">\n'
    "        Generated by Tightrope Configuration Auditor\n"
    "    </div>\n"
    "</body>\n"
    "</html>"
)


class Generator:
    """Turns an AuditReport into text in one of the supported formats."""

    def generate_report(self, report: AuditReport, format: str) -> str:
        """Render the report; raises ValueError for an unknown format."""
        renderers = {
            FORMAT_MARKDOWN: self._markdown,
            FORMAT_JSON: self._json,
            FORMAT_HTML: self._html,
        }
        renderer = renderers.get(format)
        if renderer is None:
            raise ValueError(f"unsupported format: {format}")
        return renderer(report)

    def _markdown(self, report: AuditReport) -> str:
        summary = report.summary
        lines = [
            "# 🔍 Tightrope Configuration Audit Report\n\n",
            f"**Generated:** {_rfc3339_seconds(report.timestamp)}\n",
            f"**Scan Path:** `{report.scan_path}`\n",
            f"**Files Scanned:** {report.files_scanned}\n",
            f"**Total Findings:** {summary.total_findings}\n\n",
        ]

        if summary.total_findings > 0:
            lines.append("## 📊 Summary\n\n")
            lines.append("### By Severity\n")
            lines.extend(
                f"- {severity_emoji(severity)} **{severity}:** {count}\n"
                for severity, count in summary.findings_by_severity.items()
            )
            lines.append("\n")
            lines.append("### By Rule Type\n")
            lines.extend(
                f"- **{rule}:** {count}\n" for rule, count in summary.findings_by_rule.items()
            )
            lines.append("\n")
            lines.append("## 🚨 Detailed Findings\n\n")

            for file_path, findings in _group_by_file(report.findings).items():
                lines.append(f"### 📄 `{file_path}`\n\n")
                for finding in findings:
                    line_info = f" (Line {finding.line_number})" if finding.line_number > 0 else ""
                    lines.append(
                        f"#### {severity_emoji(finding.severity)} {finding.rule}{line_info}\n"
                    )
                    lines.append(f"**Message:** {finding.message}\n\n")
                    lines.append(f"**Recommendation:** {finding.recommendation}\n\n")
                    if finding.key:
                        lines.append(f"**Key:** `{finding.key}`\n")
                    if finding.value:
                        lines.append(f"**Value:** `{finding.value}`\n")
                    lines.append("---\n\n")
        else:
            lines.append("## ✅ No Issues Found\n\n")
            lines.append("Great! No configuration issues were detected in the scanned files.\n\n")

        lines.append("---\n")
        lines.append("*Generated by Tightrope Configuration Auditor*\n")
        return "".join(lines)

    def _json(self, report: AuditReport) -> str:
        data = report.to_dict()
        summary = data["summary"]
        summary["findings_by_severity"] = dict(sorted(summary["findings_by_severity"].items()))
        summary["findings_by_rule"] = dict(sorted(summary["findings_by_rule"].items()))
        text = json.dumps(data, indent=2, ensure_ascii=False)
        return "".join(_JSON_ESCAPES.get(char, char) for char in text)

    def _html(self, report: AuditReport) -> str:
        summary = report.summary
        generated = _escape_html(report.timestamp.strftime("%Y-%m-%d %H:%M:%S"))
        parts = [_HTML_HEAD, "<body>\n"]
        parts.append(
            '    <div class="header">\n'
            "        <h1>🔍 Configuration Audit Report</h1>\n"
            '        <div class="meta">\n'
            f"            <div><strong>Generated:</strong> {generated} UTC</div>\n"
            f"            <div><strong>Scan Path:</strong> {_escape_html(report.scan_path)}</div>\n"
            f"            <div><strong>Files Scanned:</strong> {report.files_scanned}</div>\n"
            "        </div>\n"
            "    </div>\n\n"
        )

        parts.append('    <div class="summary">\n')
        parts.append(
            '        <div class="summary-card">\n'
            "            <h3>📊 Overview</h3>\n"
            '            <div class="stat-item">\n'
            f'                <div class="stat-count">{summary.total_findings}</div>\n'
            '                <div class="stat-label">Total Findings</div>\n'
            "            </div>\n"
            "        </div>\n"
        )
        parts.append(self._stats_card("🚨 By Severity", summary.findings_by_severity))
        parts.append(self._stats_card("🔍 By Rule Type", summary.findings_by_rule))
        parts.append("    </div>\n\n")

        if summary.total_findings > 0:
            parts.append('    <div class="findings">\n        <h2>🚨 Detailed Findings</h2>\n')
            grouped = _group_by_file(report.findings)
            for file_path in sorted(grouped):
                parts.append(
                    '        <div class="file-section">\n'
                    f'            <div class="file-title">📄 {_escape_html(file_path)}</div>\n'
                )
                parts.extend(self._html_finding(finding) for finding in grouped[file_path])
                parts.append("        </div>\n")
            parts.append("    </div>\n")
        else:
            parts.append(
                '    <div class="findings">\n'
                '        <div class="no-findings">\n'
                "            <h2>✅ All Clear!</h2>\n"
                "            <p>No configuration issues were detected in the scanned files.</p>\n"
                "        </div>\n"
                "    </div>\n"
            )

        parts.append(_HTML_FOOTER)
        return "".join(parts)

    @staticmethod
    def _stats_card(title: str, counts: dict[Any, int]) -> str:
        items = "".join(
            '                <div class="stat-item">\n'
            f'                    <div class="stat-count">{count}</div>\n'
            f'                    <div class="stat-label">{_escape_html(label)}</div>\n'
            "                </div>\n"
            for label, count in sorted((str(k), v) for k, v in counts.items())
        )
        return (
            '        <div class="summary-card">\n'
            f"            <h3>{title}</h3>\n"
            '            <div class="stats-grid">\n'
            f"{items}"
            "            </div>\n"
            "        </div>\n"
        )

    @staticmethod
    def _html_finding(finding: ReportEntry) -> str:
        css = _escape_html(str(finding.severity).lower())
        line = (
            f'                    <span class="finding-line">(Line {finding.line_number})</span>\n'
            if finding.line_number > 0
            else ""
        )
        details = ""
        if finding.key:
            value = (
                f"<br><strong>Value:</strong> {_escape_html(finding.value)}" if finding.value else ""
            )
            details = (
                '                <div class="finding-details">\n'
                f"                    <strong>Key:</strong> {_escape_html(finding.key)}\n"
                f"                    {value}\n"
                "                </div>\n"
            )
        return (
            f'            <div class="finding {css}">\n'
            '                <div class="finding-header">\n'
            f'                    <span class="severity-badge severity-{css}">'
            f"{_escape_html(finding.severity)}</span>\n"
            f'                    <span class="finding-rule">{_escape_html(finding.rule)}</span>\n'
            f"{line}"
            "                </div>\n"
            f'                <div class="finding-message">{_escape_html(finding.message)}</div>\n'
            '                <div class="finding-recommendation">\n'
            "                    <strong>💡 Recommendation:</strong> "
            f"{_escape_html(finding.recommendation)}\n"
            "                </div>\n"
            f"{details}"
            "            </div>\n"
        )