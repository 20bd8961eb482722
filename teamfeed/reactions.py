"""
Reaction model: a mapping from emoji key to the ids of the users who reacted.

Toggling is a pure set operation so it can be tested without any I/O;
the posts router persists whatever `toggle_reaction` returns.
"""
from typing import Mapping, Sequence

Reactions = dict[str, list[str]]


def toggle_reaction(
    reactions: Mapping[str, Sequence[str]] | None,
    emoji: str,
    user_id: str,
) -> Reactions:
    """
    Return a new reactions mapping with `user_id` toggled under `emoji`.

    Present → removed, absent → appended. Existing order of user ids is kept
    and duplicates already in the input are collapsed. Emoji keys left with
    no users are dropped. The input mapping is never mutated.
    """
    result: Reactions = {}
    for key, users in (reactions or {}).items():
        result[key] = list(dict.fromkeys(users))

    users = result.get(emoji, [])
    if user_id in users:
        users = [u for u in users if u != user_id]
    else:
        users = users + [user_id]

    if users:
        result[emoji] = users
    else:
        result.pop(emoji, None)
    return result


def reaction_count(reactions: Mapping[str, Sequence[str]] | None) -> int:
    """Total number of reactions across every emoji key."""
    return sum(len(users) for users in (reactions or {}).values())


def has_reacted(reactions: Mapping[str, Sequence[str]] | None, emoji: str, user_id: str) -> bool:
    return user_id in (reactions or {}).get(emoji, ())
