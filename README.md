# tightrope

A small configuration auditor. It walks a directory tree for `*.yaml`,
`*.yml`, `*.json` and `*.toml` files (extensions matched case-insensitively,
files whose names start with a dot skipped, entries visited in lexical
order) and reports:

- **Key Conflict**: the same dotted key with different values across files
  (Warning)
- **Shadowing**: a key repeated within one scope of a file (Warning)
- **Secrets in Plain Text**: keys whose names contain words such as
  `password`, `token`, `secret` or `key`, or `key: value` lines matching
  secret patterns; values that look like placeholders (`${...}`, `{{...}}`,
  `<...>`, `TODO`, `***` and similar) are ignored (Critical)
- **Deprecated Fields**: keys containing a configured deprecated field name,
  and `apiVersion` values `extensions/v1beta1`, `apps/v1beta1` or
  `apps/v1beta2` (Warning)
- **Redundant Values**: identical key/value pairs found in more than one file
  (Info)

## Installation

```
pip install .
```

## Command line

```
tightrope audit                              # audit the current directory, Markdown output
tightrope audit --path ./configs             # audit a specific directory
tightrope audit --format json                # JSON report on stdout
tightrope audit --format html > report.html  # HTML report
tightrope audit --verbose                    # detailed logging on stderr
tightrope version                            # prints "tightrope v0.1.0"
tightrope help audit                         # help for a command
```

`-p/--path` defaults to `.`, `-f/--format` to `markdown`; `-v/--verbose` is
accepted both before and after `audit`.

The report goes to standard output and logging to standard error. Files
that fail to parse are logged and skipped. The command exits with status 1
when any critical finding is reported, or when the audit cannot run (an
unknown format, a missing path, or no file that could be parsed), in which
case it prints `Error: ...` to standard error.

## Library use

```python
from tightrope.walker import Walker
from tightrope.parser import Parser
from tightrope.engine import Engine
from tightrope.report import Generator

files = Walker().walk("configs")
parser = Parser()
configs = [parser.parse_file(path) for path in files]
report = Engine().audit_configs(configs, "configs")
print(Generator().generate_report(report, "markdown"))
```

- `Parser.parse_file` returns a `ConfigData` and raises `tightrope.parser.ParseError`
  for unreadable, unsupported or malformed files.
- `Engine(deprecated_fields=...)` takes a mapping of group names to lists of
  deprecated field names; a key is flagged when it contains any of them.
- `Generator.generate_report(report, format)` accepts `"markdown"`, `"json"`
  or `"html"` and raises `ValueError` otherwise.
- `AuditReport.to_dict()` gives a JSON-ready mapping of the report.
- `tightrope.cli.run_audit(path, output_format, verbose)` runs the whole
  pipeline the command uses, prints the report and returns the exit status
  (1 when there are critical findings, else 0).

## What it does not do

- There is no built-in list of deprecated field names. `Engine()` with no
  argument, as the command uses it, only flags deprecated `apiVersion`
  values; pass `deprecated_fields` to check field names.
- Only YAML files carry line numbers for their keys; findings in JSON and
  TOML files have none (line number `-1`).
- Reports are only written to standard output; there is no option to write
  them to a file.