from ...constants import KEY_DAILY_SUMMARY, LIST_KEYS
from ..repositories.settings_repo import SettingsRepo


def seed(store):
    """
    First-run defaults: settings singleton plus empty collections.
    Safe to run repeatedly; existing data is never overwritten.
    """
    existing = set(store.keys())
    with store.transaction():
        SettingsRepo(store).ensure_defaults()
        for key in LIST_KEYS:
            if key not in existing:
                store.write(key, [])
        if KEY_DAILY_SUMMARY not in existing:
            store.write(KEY_DAILY_SUMMARY, {})
