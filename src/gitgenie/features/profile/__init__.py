"""GitHub profile rows kept per signed-in user."""

from gitgenie.features.profile.models import UserProfile
from gitgenie.features.profile.store import ProfileStore, SupabaseProfileStore, build_profile_row

__all__ = ["UserProfile", "ProfileStore", "SupabaseProfileStore", "build_profile_row"]
