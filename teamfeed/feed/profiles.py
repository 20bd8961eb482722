"""Per-session cache of user profiles, used for post author avatars."""
import logging
from typing import Awaitable, Callable, Optional

from teamfeed.errors import FetchError
from teamfeed.schemas import UserResponse as UserProfile

logger = logging.getLogger(__name__)

ProfileFetcher = Callable[[str], Awaitable[Optional[UserProfile]]]


class ProfileCache:
    """
    user_id → profile, filled lazily and never evicted.

    Lives exactly as long as the FeedSession that owns it. After `close()`
    the cache stays empty: fetches that resolve later are discarded.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}
        self._closed = False

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def get(self, user_id: str) -> Optional[UserProfile]:
        return self._profiles.get(user_id)

    def put(self, profile: UserProfile) -> None:
        self._profiles[profile.id] = profile

    async def ensure(self, user_id: str, fetch: ProfileFetcher) -> Optional[UserProfile]:
        """Return the cached profile, fetching it once if missing. Fetch failures yield None."""
        if user_id in self._profiles:
            return self._profiles[user_id]
        try:
            profile = await fetch(user_id)
        except FetchError as exc:
            logger.warning("Profile %s unavailable: %s", user_id, exc)
            return None
        if self._closed:
            logger.debug("Dropping profile %s: cache closed", user_id)
            return None
        if profile is not None:
            self.put(profile)
        return profile

    def clear(self) -> None:
        self._profiles.clear()

    def close(self) -> None:
        self._closed = True
        self.clear()
