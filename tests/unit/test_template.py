"""Tests for the template decoder."""

from __future__ import annotations

import pytest

from recipeforge.core.template import decode_template
from recipeforge.errors import TemplateDecodeError


class TestDecodeTemplate:
    def test_object_decoded(self, template_bytes: bytes, template: dict):
        assert decode_template(template_bytes) == template

    def test_no_schema_enforced(self):
        assert decode_template(b'{"anything": [1, 2]}') == {"anything": [1, 2]}

    def test_empty_object(self):
        assert decode_template(b"{}") == {}

    @pytest.mark.parametrize("data", [b"[]", b'"text"', b"42", b"null"])
    def test_non_object_rejected(self, data: bytes):
        with pytest.raises(TemplateDecodeError, match="JSON object"):
            decode_template(data)

    def test_invalid_json_rejected(self):
        with pytest.raises(TemplateDecodeError, match="not valid JSON"):
            decode_template(b'{"resources": [')

    def test_invalid_utf8_rejected(self):
        with pytest.raises(TemplateDecodeError):
            decode_template(b"\xff\xfe\xfa")

    def test_excessive_nesting_rejected(self):
        data = b'{"a":' * 100_000 + b"1" + b"}" * 100_000
        with pytest.raises(TemplateDecodeError, match="nested too deeply"):
            decode_template(data)
