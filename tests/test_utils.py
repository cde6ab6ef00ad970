from datetime import datetime, timedelta, timezone

import pytest

from forum_api.utils.slugs import next_free_slug
from forum_api.utils.time_utils import diff_for_humans

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(0), "1 second ago"),
        (timedelta(seconds=1), "1 second ago"),
        (timedelta(seconds=45), "45 seconds ago"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=5, seconds=59), "5 minutes ago"),
        (timedelta(hours=3), "3 hours ago"),
        (timedelta(days=1), "1 day ago"),
        (timedelta(days=15), "2 weeks ago"),
        (timedelta(days=65), "2 months ago"),
        (timedelta(days=800), "2 years ago"),
    ],
)
def test_diff_for_humans(delta, expected):
    assert diff_for_humans(NOW - delta, now=NOW) == expected


def test_diff_for_humans_future_and_naive_datetimes():
    assert diff_for_humans(NOW + timedelta(hours=2), now=NOW) == "2 hours from now"
    naive = (NOW - timedelta(minutes=10)).replace(tzinfo=None)
    assert diff_for_humans(naive, now=NOW) == "10 minutes ago"


def test_next_free_slug():
    assert next_free_slug("topic", set()) == "topic"
    assert next_free_slug("topic", {"topic"}) == "topic-2"
    assert next_free_slug("topic", {"topic", "topic-2", "topic-3"}) == "topic-4"
