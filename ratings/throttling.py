from rest_framework.throttling import UserRateThrottle


class RatingSubmitThrottle(UserRateThrottle):
    """Rating submissions per user; rate from DEFAULT_THROTTLE_RATES["ratings"]."""

    scope = "ratings"
