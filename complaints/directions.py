import re

ANDROID = re.compile(r"android", re.IGNORECASE)
IOS = re.compile(r"iphone|ipad|ipod", re.IGNORECASE)


def view_url(lat, lng):
    return f"https://www.google.com/maps?q={lat},{lng}"


def directions_url(lat, lng, user_agent=""):
    """Deep link that opens turn-by-turn directions on the caller's platform."""
    user_agent = user_agent or ""
    if ANDROID.search(user_agent):
        return f"google.navigation:q={lat},{lng}"
    if IOS.search(user_agent):
        return f"maps://maps.apple.com/?daddr={lat},{lng}"
    return f"https://www.google.com/maps/dir/?api=1&destination={lat},{lng}"


def platform_for(user_agent):
    user_agent = user_agent or ""
    if ANDROID.search(user_agent):
        return "android"
    if IOS.search(user_agent):
        return "ios"
    return "web"
