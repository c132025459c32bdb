"""Weather.com PWS API constants and the shared session.

API: https://api.weather.com/v2/pws/observations/current
The endpoint is the one wunderground.com's own dashboards call; it rejects
requests that do not look like they come from that site, hence the browser
headers below.
"""

from pws_mqtt.services.http import NO_RETRY, create_session

CURRENT_OBSERVATIONS_API = "https://api.weather.com/v2/pws/observations/current"

# Fixed query parameters: decimal values, JSON body, metric units (``metric`` group)
BASE_PARAMS = {
    "numericPrecision": "decimal",
    "format": "json",
    "units": "m",
}

REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:131.0) Gecko/20100101 Firefox/131.0"
    ),
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-GB,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Referer": "https://www.wunderground.com",
    "Origin": "https://www.wunderground.com",
    "DNT": "1",
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Site": "cross-site",
    "Sec-Fetch-Mode": "cors",
}

REQUEST_TIMEOUT = 15  # seconds

#: Single-attempt session; retries belong to ``stations.resolve_observation``.
session = create_session(retry=NO_RETRY, timeout=REQUEST_TIMEOUT, headers=REQUEST_HEADERS)
