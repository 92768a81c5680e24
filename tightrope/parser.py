"""Parsing of YAML, JSON and TOML configuration files."""

from __future__ import annotations

import json
import logging
import math
import os
import tomllib
from decimal import Decimal
from typing import Any

import yaml

from tightrope.types import ConfigData

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Raised when a configuration file cannot be read or parsed."""


def _extension(path: str) -> str:
    name = os.path.basename(path)
    index = name.rfind(".")
    return name[index:].lower() if index >= 0 else ""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON value {name}")


class Parser:
    """Reads configuration files into ConfigData."""

    def parse_file(self, file_path: str | os.PathLike[str]) -> ConfigData:
        """Parse a file and return its normalised data."""
        path = os.fspath(file_path)
        try:
            handle = open(path, "rb")
        except OSError as exc:
            raise ParseError(f"failed to open file {path}: {exc}") from exc
        with handle:
            try:
                content = handle.read()
            except OSError as exc:
                raise ParseError(f"failed to read file {path}: {exc}") from exc

        ext = _extension(path)
        config = ConfigData(file_path=path, format=ext)

        handlers = {
            ".yaml": self._parse_yaml,
            ".yml": self._parse_yaml,
            ".json": self._parse_json,
            ".toml": self._parse_toml,
        }
        handler = handlers.get(ext)
        if handler is None:
            raise ParseError(f"unsupported file format: {ext}")

        try:
            handler(content, config)
        except ParseError as exc:
            logger.error("Failed to parse configuration file %s (%s): %s", path, ext, exc)
            raise

        logger.debug("Successfully parsed configuration file %s (%s, %d keys)", path, ext, len(config.data))
        return config

    def _parse_yaml(self, content: bytes, config: ConfigData) -> None:
        try:
            root = yaml.compose(content, Loader=yaml.SafeLoader)
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ParseError(f"failed to parse YAML: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ParseError(f"failed to decode YAML: cannot decode {type(data).__name__} into a mapping")

        config.data = {get_string_value(key): value for key, value in data.items()}
        if root is not None:
            self._extract_yaml_lines(root, "", config.line_map)

    def _extract_yaml_lines(self, node: yaml.Node, prefix: str, line_map: dict[str, int]) -> None:
        if not isinstance(node, yaml.MappingNode):
            return
        for key_node, value_node in node.value:
            key = key_node.value if isinstance(key_node, yaml.ScalarNode) else ""
            full_key = f"{prefix}.{key}" if prefix else key
            line_map[full_key] = key_node.start_mark.line + 1
            if isinstance(value_node, yaml.MappingNode):
                self._extract_yaml_lines(value_node, full_key, line_map)

    def _parse_json(self, content: bytes, config: ConfigData) -> None:
        try:
            data = json.loads(content, parse_int=float, parse_constant=_reject_constant)
        except ValueError as exc:
            raise ParseError(f"failed to parse JSON: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ParseError(f"failed to parse JSON: cannot unmarshal {type(data).__name__} into a mapping")
        config.data = data

    def _parse_toml(self, content: bytes, config: ConfigData) -> None:
        try:
            config.data = tomllib.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
            raise ParseError(f"failed to parse TOML: {exc}") from exc


def flatten_map(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into dot-separated keys."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            result.update(flatten_map(value, full_key))
        else:
            result[full_key] = value
    return result


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign, digit_tuple, exponent = Decimal(repr(value)).normalize().as_tuple()
    digits = "".join(map(str, digit_tuple))
    exp = len(digits) + exponent - 1
    prefix = "-" if sign else ""

    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        exp_sign = "-" if exp < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(exp):02d}"

    if exponent >= 0:
        return prefix + digits + "0" * exponent
    point = len(digits) + exponent
    if point > 0:
        return f"{prefix}{digits[:point]}.{digits[point:]}"
    return f"{prefix}0.{'0' * -point}{digits}"


def _format_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(item) for item in value) + "]"
    if isinstance(value, dict):
        items = sorted((_format_value(k), _format_value(v)) for k, v in value.items())
        return "map[" + " ".join(f"{k}:{v}" for k, v in items) + "]"
    return str(value)


def get_string_value(value: Any) -> str:
    """Render any parsed value as a string; None becomes the empty string."""
    if value is None:
        return ""
    return _format_value(value)