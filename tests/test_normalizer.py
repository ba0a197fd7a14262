"""Tests for model output normalization."""

import pytest

from recruitcrm.services.normalizer import (
    decode_json_object,
    is_usable_value,
    normalize_record,
    scan_key_value_lines,
    strip_code_fences,
)

FIELDS = ["company_name", "location", "industry", "number_of_employees", "website"]
ALIASES = {"name": "company_name", "employees": "number_of_employees"}


class TestStripCodeFences:
    """Markdown fence removal."""

    @pytest.mark.parametrize("raw", [
        '```json\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
        '```JSON {"a": 1}```',
        '  {"a": 1}  ',
    ])
    def test_fence_forms(self, raw):
        assert strip_code_fences(raw) == '{"a": 1}'

    def test_fenced_block_inside_prose(self):
        raw = 'Here is the data:\n```json\n{"a": 1}\n```\nHope this helps.'
        assert strip_code_fences(raw) == '{"a": 1}'

    def test_empty_input(self):
        assert strip_code_fences("") == ""
        assert strip_code_fences(None) == ""


class TestDecodeJsonObject:
    def test_decodes_fenced_object(self):
        assert decode_json_object('```json\n{"title": "Engineer"}\n```') == {"title": "Engineer"}

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            decode_json_object("[1, 2, 3]")

    def test_rejects_invalid_json(self):
        with pytest.raises(ValueError):
            decode_json_object("not json at all")


class TestUsableValue:
    @pytest.mark.parametrize("value,expected", [
        ("Acme", True),
        ("  Acme  ", True),
        ("", False),
        ("   ", False),
        ("N/A", False),
        ("not available", False),
        ("Not Available", False),
        (None, False),
        (42, False),
    ])
    def test_usable(self, value, expected):
        assert is_usable_value(value) is expected


class TestScanKeyValueLines:
    """Line-oriented fallback."""

    def test_reads_known_keys(self):
        text = (
            "Company Name: Acme Corp\n"
            "Location: Berlin, Germany\n"
            "Industry: Software\n"
            "Number of Employees: 51-200\n"
            "Website: https://acme.example.com\n"
        )
        record = scan_key_value_lines(text, FIELDS, ALIASES)

        assert record == {
            "company_name": "Acme Corp",
            "location": "Berlin, Germany",
            "industry": "Software",
            "number_of_employees": "51-200",
            "website": "https://acme.example.com",
        }

    def test_aliases_and_quotes(self):
        text = '- "name": "Acme",\n* employees: 1000+\n'
        record = scan_key_value_lines(text, FIELDS, ALIASES)

        assert record["company_name"] == "Acme"
        assert record["number_of_employees"] == "1000+"

    def test_ignores_unknown_keys_and_sentinels(self):
        text = "Founded: 1999\nIndustry: N/A\nLocation: not available\nno colon here"
        record = scan_key_value_lines(text, FIELDS, ALIASES)

        assert record == {field: "" for field in FIELDS}


class TestNormalizeRecord:
    def test_json_path_keeps_only_known_fields(self):
        text = '```json\n{"company_name": "Acme", "industry": "N/A", "extra": "x"}\n```'
        record = normalize_record(text, FIELDS)

        assert set(record) == set(FIELDS)
        assert record["company_name"] == "Acme"
        assert record["industry"] == ""

    def test_non_string_values_become_empty(self):
        record = normalize_record('{"company_name": "Acme", "number_of_employees": 120}', FIELDS)
        assert record["number_of_employees"] == ""

    def test_falls_back_to_line_scan(self):
        record = normalize_record("Sure!\nCompany Name: Acme\nWebsite: acme.io", FIELDS)

        assert record["company_name"] == "Acme"
        assert record["website"] == "acme.io"
        assert record["location"] == ""

    def test_garbage_never_raises(self):
        record = normalize_record("¯\\_(ツ)_/¯", FIELDS)
        assert record == {field: "" for field in FIELDS}
