"""
Display order for a team feed.

`order_posts` is pure and cheap enough to run on every state change:

  1. filter  — section (unless "all") AND case-insensitive search over
               title / description
  2. sort    — pinned posts first, always
  3. then    — the selected sort option; ties keep their input order
"""
from datetime import datetime
from typing import Iterable

from teamfeed.reactions import reaction_count
from teamfeed.schemas import PostResponse as Post

ALL_SECTIONS = "all"

SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
SORT_ALPHABETICAL = "alphabetical"
SORT_POPULAR = "popular"
SORT_OPTIONS = (SORT_NEWEST, SORT_OLDEST, SORT_ALPHABETICAL, SORT_POPULAR)


def matches_section(post: Post, section: str) -> bool:
    return section == ALL_SECTIONS or post.section_id == section


def matches_search(post: Post, search: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    return needle in (post.title or "").lower() or needle in (post.description or "").lower()


def _created(post: Post) -> datetime:
    return post.created_at


def order_posts(
    posts: Iterable[Post],
    section: str = ALL_SECTIONS,
    search: str = "",
    sort_option: str = SORT_NEWEST,
) -> list[Post]:
    """
    Filter and order posts for display.

    `newest` lists oldest-first so the newest post sits at the bottom next
    to the composer; `oldest` is the reverse. `alphabetical` compares
    casefolded titles, so "apple" and "Banana" sort a-to-z regardless of
    case rather than in raw code-point order. Unknown options sort as `newest`.
    """
    visible = [p for p in posts if matches_section(p, section) and matches_search(p, search)]

    # Python's sort is stable: sort by the secondary key first, then by pin
    if sort_option == SORT_OLDEST:
        visible.sort(key=_created, reverse=True)
    elif sort_option == SORT_ALPHABETICAL:
        visible.sort(key=lambda p: (p.title or "").casefold())
    elif sort_option == SORT_POPULAR:
        visible.sort(key=lambda p: reaction_count(p.reactions), reverse=True)
    else:
        visible.sort(key=_created)

    visible.sort(key=lambda p: not p.is_pinned)
    return visible

