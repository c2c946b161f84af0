"""
Unit tests for logging helpers.
"""

import json
import logging

from gemini_relay.core.logging_config import (
    JSONFormatter, filter_sensitive_data, truncate_large_data
)


class TestFilterSensitiveData:

    def test_masks_credentials(self):
        data = {"api_key": "AIza-secret", "headers": {"Authorization": "Bearer x"}, "prompt": "hi"}
        filtered = filter_sensitive_data(data)
        assert filtered["api_key"] == "***FILTERED***"
        assert filtered["headers"]["Authorization"] == "***FILTERED***"
        assert filtered["prompt"] == "hi"

    def test_summarizes_upload_payload(self):
        filtered = filter_sensitive_data({"base64Data": "QUJD" * 10, "fileName": "f.txt"})
        assert filtered["base64Data"] == "<40 base64 chars>"
        assert filtered["fileName"] == "f.txt"

    def test_file_token_is_not_masked(self):
        assert filter_sensitive_data({"fileToken": "files/abc"}) == {"fileToken": "files/abc"}

    def test_lists_are_filtered(self):
        assert filter_sensitive_data([{"secret": "s"}]) == [{"secret": "***FILTERED***"}]


def test_truncate_large_data():
    assert truncate_large_data("short") == "short"
    result = truncate_large_data("x" * 20, max_length=5)
    assert result.startswith("xxxxx...")
    assert "total length: 20" in result


def test_json_formatter_merges_extra_fields():
    record = logging.LogRecord("gemini_relay.test", logging.INFO, __file__, 1, "done", None, None)
    record.extra_fields = {"token": "T1", "size_bytes": 3}

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "done"
    assert payload["level"] == "INFO"
    assert payload["token"] == "T1"
    assert payload["size_bytes"] == 3
