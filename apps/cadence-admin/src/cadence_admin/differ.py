"""Change detection between two voice profile lists."""

from __future__ import annotations

from collections.abc import Sequence

from .schemas import VoiceProfile


def _fingerprint(profile: VoiceProfile) -> dict:
    # JSON-mode dump: dict equality ignores key order and compares every field.
    return profile.model_dump(mode="json")


def detect_changed_profiles(
    before: Sequence[VoiceProfile] | None,
    after: Sequence[VoiceProfile] | None,
) -> list[VoiceProfile]:
    """Return the members of `after` that existed in `before` and now differ.

    Profiles whose id is new have no agents bound to them yet, so they are
    never part of the result. Deleted profiles are not reported either.
    """
    if not after:
        return []

    previous = {profile.id: profile for profile in before or ()}
    changed: list[VoiceProfile] = []
    for profile in after:
        current = previous.get(profile.id)
        if current is None:
            continue
        if _fingerprint(current) != _fingerprint(profile):
            changed.append(profile)
    return changed
