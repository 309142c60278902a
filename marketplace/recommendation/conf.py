from django.conf import settings

DEFAULTS = {
    "CANDIDATE_LIMIT": 1000,
    "SIMILAR_USERS_LIMIT": 50,
    "MIN_SIMILARITY_THRESHOLD": 0.1,
    "POPULARITY_CALIBRATION": 500,
    "SNAPSHOT_SIZE": 100,
    "FEED_PAGE_SIZE": 20,
    "CLICK_BOOST": 0.1,
    "MAX_CLICK_BOOST": 0.3,
    "PARALLEL_SCORING": True,
    # seconds; None waits for the scorers indefinitely
    "SCORING_TIMEOUT": None,
    "PROFILE_CACHE_SECONDS": 0,
}


def get_setting(name):
    # read at call time so override_settings reaches the engine
    user_settings = getattr(settings, "RECOMMENDATIONS", None) or {}
    if name in user_settings:
        return user_settings[name]
    return DEFAULTS[name]
