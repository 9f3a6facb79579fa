"""Template serialization to YAML."""

from __future__ import annotations

import io
from typing import Any

import yaml


YAML_INDENT = 4
# Collections nested deeper than this are written inline
FLOW_LEVEL = 16


class _TemplateDumper(yaml.SafeDumper):
    """Safe dumper that never emits anchors for shared sub-documents."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def _apply_flow_level(node: yaml.Node, depth: int, flow_level: int) -> None:
    if isinstance(node, yaml.MappingNode):
        node.flow_style = depth >= flow_level
        for key, value in node.value:
            _apply_flow_level(key, depth + 1, flow_level)
            _apply_flow_level(value, depth + 1, flow_level)
    elif isinstance(node, yaml.SequenceNode):
        node.flow_style = depth >= flow_level
        for item in node.value:
            _apply_flow_level(item, depth + 1, flow_level)


def serialize_template(template: dict[str, Any], flow_level: int = FLOW_LEVEL) -> str:
    """Render a template document as YAML, keeping key order."""
    representer = _TemplateDumper(io.StringIO(), sort_keys=False)
    node = representer.represent_data(template)
    _apply_flow_level(node, 0, flow_level)
    return yaml.serialize(
        node,
        Dumper=_TemplateDumper,
        indent=YAML_INDENT,
        allow_unicode=True,
        width=float("inf"),
    )
