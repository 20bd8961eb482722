"""Tests for feed filtering and display order."""

from datetime import datetime, timedelta

import pytest

from teamfeed.feed.ordering import (
    SORT_ALPHABETICAL,
    SORT_NEWEST,
    SORT_OLDEST,
    SORT_OPTIONS,
    SORT_POPULAR,
    order_posts,
)
from teamfeed.schemas import PostResponse as Post

T0 = datetime(2024, 3, 1, 9, 0, 0)


def make_post(id, title="Post", minutes=0, pinned=False, section=None, description="", reactions=None):
    created = T0 + timedelta(minutes=minutes)
    return Post(
        id=str(id),
        team_id="team-1",
        section_id=section,
        title=title,
        description=description,
        is_pinned=pinned,
        reactions=reactions or {},
        created_at=created,
        updated_at=created,
    )


def ids(posts):
    return [p.id for p in posts]


@pytest.fixture
def feed():
    return [
        make_post(1, "Charlie", minutes=1, section="s1", reactions={"like": ["a"]}),
        make_post(2, "alpha", minutes=2, pinned=True, section="s2"),
        make_post(3, "Bravo", minutes=3, section="s1", description="<p>Release NOTES</p>",
                  reactions={"like": ["a", "b"], "tada": ["c"]}),
        make_post(4, "Delta", minutes=4, pinned=True, section="s1", reactions={"like": ["a"]}),
        make_post(5, "Echo", minutes=5, section="s2"),
    ]


def test_pinned_first_regardless_of_date():
    posts = [
        make_post(1, "A", minutes=0, pinned=False),
        make_post(2, "B", minutes=10, pinned=True),
    ]
    assert ids(order_posts(posts, "all", "", SORT_NEWEST)) == ["2", "1"]


@pytest.mark.parametrize("sort_option", SORT_OPTIONS + ("bogus",))
@pytest.mark.parametrize("section", ["all", "s1", "s2", "missing"])
@pytest.mark.parametrize("search", ["", "a", "notes"])
def test_pinned_always_precede_unpinned(feed, sort_option, section, search):
    ordered = order_posts(feed, section, search, sort_option)
    flags = [p.is_pinned for p in ordered]
    assert flags == sorted(flags, reverse=True)


def test_newest_lists_oldest_first(feed):
    assert ids(order_posts(feed, sort_option=SORT_NEWEST)) == ["2", "4", "1", "3", "5"]


def test_oldest_lists_newest_first(feed):
    assert ids(order_posts(feed, sort_option=SORT_OLDEST)) == ["4", "2", "5", "3", "1"]


def test_alphabetical_within_pin_groups(feed):
    ordered = order_posts(feed, "all", "", SORT_ALPHABETICAL)
    assert ids(ordered) == ["2", "4", "3", "1", "5"]
    for group in (True, False):
        titles = [p.title.casefold() for p in ordered if p.is_pinned is group]
        assert titles == sorted(titles)


def test_alphabetical_ignores_case():
    posts = [make_post(1, "banana", minutes=1), make_post(2, "Cherry", minutes=2), make_post(3, "apple", minutes=3)]
    assert [p.title for p in order_posts(posts, sort_option=SORT_ALPHABETICAL)] == ["apple", "banana", "Cherry"]


def test_popular_by_total_reaction_count(feed):
    assert ids(order_posts(feed, sort_option=SORT_POPULAR)) == ["4", "2", "3", "1", "5"]


def test_unknown_sort_behaves_as_newest(feed):
    assert ids(order_posts(feed, sort_option="trending")) == ids(order_posts(feed, sort_option=SORT_NEWEST))


def test_ties_keep_input_order():
    posts = [make_post(i, "Same", minutes=0) for i in range(5)]
    for option in SORT_OPTIONS:
        assert ids(order_posts(posts, sort_option=option)) == ["0", "1", "2", "3", "4"]


def test_section_filter(feed):
    assert ids(order_posts(feed, "s2")) == ["2", "5"]


def test_search_matches_title_or_description_case_insensitively(feed):
    assert ids(order_posts(feed, search="ECHO")) == ["5"]
    assert ids(order_posts(feed, search="release notes")) == ["3"]


def test_section_and_search_combine(feed):
    # "a" matches Charlie, alpha, Bravo, Delta; only Bravo/Charlie/Delta are in s1
    assert ids(order_posts(feed, "s1", "a")) == ["4", "1", "3"]
    assert order_posts(feed, "s2", "bravo") == []


def test_input_sequence_untouched(feed):
    before = ids(feed)
    order_posts(feed, sort_option=SORT_OLDEST)
    assert ids(feed) == before
