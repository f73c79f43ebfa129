"""
Payload coercion and pagination tests.
"""

from datetime import datetime

import pytest
from werkzeug.datastructures import MultiDict

from stockroom.errors import ValidationError
from stockroom.time_utils import parse_timestamp, to_utc_z
from stockroom.validation import parse_id_list, parse_pagination


class TestPagination:
    @pytest.mark.parametrize(
        "args,expected",
        [
            ({}, (50, 0)),
            ({"limit": "10", "offset": "20"}, (10, 20)),
            ({"limit": "0"}, (1, 0)),
            ({"limit": "9999"}, (500, 0)),
            ({"offset": "-1"}, (50, 0)),
            ({"limit": "abc"}, (50, 0)),
        ],
    )
    def test_clamping(self, args, expected):
        assert parse_pagination(MultiDict(args), default_limit=50, max_limit=500) == expected


class TestIdLists:
    def test_ids(self):
        assert parse_id_list("categories", [1, "2"]) == [1, 2]
        assert parse_id_list("categories", None) == []

    @pytest.mark.parametrize("value", ["1,2", [1.5], [True], [2 ** 40]])
    def test_rejected(self, value):
        with pytest.raises(ValidationError):
            parse_id_list("categories", value)


class TestTimestamps:
    def test_epoch_seconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1)
        assert parse_timestamp("86400") == datetime(1970, 1, 2)

    def test_iso_with_offset_normalized_to_utc(self):
        assert parse_timestamp("2024-05-01T12:00:00+02:00") == datetime(2024, 5, 1, 10, 0, 0)

    def test_serialization(self):
        assert to_utc_z(datetime(2024, 5, 1, 10, 0, 0)) == "2024-05-01T10:00:00Z"
        assert to_utc_z(None) is None
