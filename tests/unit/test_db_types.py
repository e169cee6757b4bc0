"""Unit tests for the StringList column type."""

import pytest
from libs.db.types import StringList


@pytest.mark.unit
def test_bind_encodes_json_array():
    column_type = StringList()
    assert column_type.process_bind_param(["Blend", "Tuning"], None) == (
        '["Blend", "Tuning"]'
    )
    assert column_type.process_bind_param(None, None) == "[]"


@pytest.mark.unit
@pytest.mark.parametrize(
    "stored,expected",
    [
        ('["Blend", "Tuning"]', ["Blend", "Tuning"]),
        ("", []),
        (None, []),
        ('{"not": "a list"}', []),
    ],
)
def test_result_decodes_to_list(stored, expected):
    assert StringList().process_result_value(stored, None) == expected
