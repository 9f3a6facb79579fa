"""Unit tests for template serialization."""

from __future__ import annotations

from typing import Any

import yaml

from stack_deployer.infrastructure.templates.serializer import serialize_template


class TestSerializeTemplate:
    def test_keeps_key_order(self) -> None:
        template = {"Resources": {"Zeta": {"Type": "A"}, "Alpha": {"Type": "B"}}, "Outputs": {}}
        body = serialize_template(template)
        assert body.index("Resources") < body.index("Outputs")
        assert body.index("Zeta") < body.index("Alpha")

    def test_block_style_with_four_space_indent(self) -> None:
        body = serialize_template({"Resources": {"Bucket": {"Type": "AWS::S3::Bucket"}}})
        assert body == "Resources:\n    Bucket:\n        Type: AWS::S3::Bucket\n"

    def test_loads_back(self, sample_template: dict[str, Any]) -> None:
        assert yaml.safe_load(serialize_template(sample_template)) == sample_template

    def test_deep_nesting_written_inline(self) -> None:
        nested: dict[str, Any] = {"leaf": "value"}
        for i in range(20):
            nested = {f"level{i}": nested}

        body = serialize_template(nested)

        assert "{" in body
        assert yaml.safe_load(body) == nested

    def test_flow_level_configurable(self) -> None:
        body = serialize_template({"Outer": {"Inner": ["a", "b"]}}, flow_level=1)
        assert body == "Outer: {Inner: [a, b]}\n"

    def test_shared_objects_not_aliased(self) -> None:
        shared = {"Ref": "Bucket"}
        template = {"Outputs": {"One": {"Value": shared}, "Two": {"Value": shared}}}

        body = serialize_template(template)

        assert "&id" not in body
        assert "*id" not in body

    def test_long_strings_not_wrapped(self) -> None:
        long_value = "word " * 60
        body = serialize_template({"Description": long_value.strip()})
        assert len(body.splitlines()) == 1
