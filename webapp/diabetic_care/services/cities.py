"""City list for the registration form, fetched from Divar's public places API."""

import threading
import time

import requests
from flask import current_app

PERSIAN_ALPHABET = 'آابپتثجچحخدذرزژسشصضطظعغفقکگلمنوهی'
_LETTER_RANK = {ch: i for i, ch in enumerate(PERSIAN_ALPHABET)}
# Arabic code points that look identical to Persian letters
_LETTER_RANK.update({'ي': _LETTER_RANK['ی'], 'ك': _LETTER_RANK['ک'], 'ى': _LETTER_RANK['ی']})


class CitiesUnavailable(Exception):
    """The city list could not be fetched and nothing is cached."""


def persian_sort_key(name: str):
    """Sort key following Persian alphabetical order; other characters sort after, by code point."""
    return tuple(
        (0, _LETTER_RANK[ch]) if ch in _LETTER_RANK else (1, ord(ch))
        for ch in name
    )


class CityCache:
    """Process-wide cache of the parsed city list."""

    def __init__(self):
        self._lock = threading.Lock()
        self._cities = None
        self._fetched_at = 0.0

    def clear(self):
        with self._lock:
            self._cities = None
            self._fetched_at = 0.0

    def get(self, fetch, max_age: float):
        with self._lock:
            fresh = self._cities is not None and time.monotonic() - self._fetched_at < max_age
            if fresh:
                return self._cities
            try:
                self._cities = fetch()
                self._fetched_at = time.monotonic()
            except (requests.RequestException, ValueError, KeyError) as e:
                print(f"[Cities] Error fetching cities: {e}")
                if self._cities is None:
                    raise CitiesUnavailable('خطا در دریافت لیست شهرها') from e
                # Serve the stale list rather than an empty dropdown
            return self._cities


cache = CityCache()


def fetch_cities(url: str, timeout: float) -> list:
    r = requests.get(url, headers={'Content-Type': 'application/json'}, timeout=timeout)
    r.raise_for_status()
    data = r.json()
    cities = [
        {'id': c['id'], 'name': c['name'], 'slug': c['slug']}
        for c in data.get('cities') or []
    ]
    cities.sort(key=lambda c: persian_sort_key(c['name']))
    return cities


def get_cities() -> list:
    config = current_app.config
    return cache.get(
        lambda: fetch_cities(config['CITIES_API_URL'], config['CITIES_TIMEOUT']),
        config['CITIES_CACHE_SECONDS'],
    )
