"""
XenoCanto Proxy: Request ID Resolution Tests
===============================================

What we test:
    ✅ Plain client tokens are kept
    ✅ Absent, overlong or unsafe values are replaced by a generated ID
"""

import pytest

from app.middleware.request_id import new_request_id, resolve_request_id


class TestResolveRequestId:

    @pytest.mark.parametrize("value", ["abc123", "trace-42", "A.b_c-9", "x" * 64])
    def test_plain_token_is_kept(self, value):
        assert resolve_request_id(value) == value

    @pytest.mark.parametrize(
        "value",
        [None, "", "x" * 65, "abc123\n", "a b", "id\r\nX-Injected: 1", "ünï"],
    )
    def test_other_values_are_replaced(self, value):
        rid = resolve_request_id(value)

        assert rid != value
        assert len(rid) == 8

    def test_generated_ids_are_short_hex(self):
        rid = new_request_id()

        assert len(rid) == 8
        int(rid, 16)
