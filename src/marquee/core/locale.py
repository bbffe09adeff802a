"""Participant locale resolution: GeoIP country lookup with a default fallback.

Locales are ISO country codes (``US``, ``RU``, ``DE``) because that is what
the GeoLite2 country database yields and what the localization table is keyed
on. A participant with no entry, or whose lookup failed, reads as the
configured default locale.
"""

from __future__ import annotations

import ipaddress
import logging
import pathlib
from typing import Protocol

import geoip2.database
import geoip2.errors
import maxminddb

logger = logging.getLogger(__name__)


class CountryResolver(Protocol):
    """IP -> country code. Implementations return None instead of raising."""

    def resolve_country(self, ip: str) -> str | None: ...


class GeoIPCountryResolver:
    """Country lookups against a local MaxMind GeoLite2-Country database.

    The reader is opened lazily on first lookup and kept open. A missing
    database file is not an error: every lookup simply yields None, and the
    file is looked for again on the next call so it can be dropped in while
    the service runs.
    """

    def __init__(self, db_path: pathlib.Path | str) -> None:
        self._db_path = pathlib.Path(db_path)
        self._reader: geoip2.database.Reader | None = None

    def _get_reader(self) -> geoip2.database.Reader | None:
        if self._reader is None:
            if not self._db_path.exists():
                return None
            self._reader = geoip2.database.Reader(str(self._db_path))
            logger.info("geoip_database_opened path=%s", self._db_path)
        return self._reader

    def resolve_country(self, ip: str) -> str | None:
        try:
            reader = self._get_reader()
            if reader is None:
                return None
            return reader.country(ip).country.iso_code
        except geoip2.errors.AddressNotFoundError:
            return None
        except (ValueError, OSError, maxminddb.InvalidDatabaseError, geoip2.errors.GeoIP2Error):
            logger.warning("geoip_lookup_failed ip=%s", ip, exc_info=True)
            return None

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None


def strip_port(address: str) -> str:
    """``1.2.3.4:27005`` -> ``1.2.3.4``; ``[::1]:27005`` -> ``::1``; bare IPv6 unchanged."""
    address = address.strip()
    if address.startswith("["):
        end = address.find("]")
        return address[1:end] if end != -1 else address[1:]
    if address.count(":") == 1:
        return address.split(":", 1)[0]
    return address


def is_local_address(ip: str) -> bool:
    """Loopback or unspecified addresses never go to GeoIP."""
    try:
        parsed = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return parsed.is_loopback or parsed.is_unspecified


class LocaleCache:
    """identity -> locale code for connected participants."""

    def __init__(self, resolver: CountryResolver, default_locale: str | None = None) -> None:
        self._resolver = resolver
        self._default_locale = default_locale
        self._locales: dict[int, str] = {}

    @property
    def default_locale(self) -> str | None:
        return self._default_locale

    @default_locale.setter
    def default_locale(self, value: str | None) -> None:
        self._default_locale = value

    def __len__(self) -> int:
        return len(self._locales)

    def __contains__(self, identity: object) -> bool:
        return identity in self._locales

    def on_authorize(self, identity: int, source_address: str) -> str:
        """Resolve and remember the locale for a newly authorized participant."""
        locale = self._resolve(strip_port(source_address))
        self._locales[identity] = locale
        logger.debug("locale_resolved identity=%d locale=%s", identity, locale)
        return locale

    def on_disconnect(self, identity: int) -> None:
        self._locales.pop(identity, None)

    def lookup(self, identity: int | None) -> str | None:
        if identity is None:
            return self._default_locale
        return self._locales.get(identity, self._default_locale)

    def clear(self) -> None:
        self._locales.clear()

    def _resolve(self, ip: str) -> str:
        default = self._default_locale or ""
        if not ip or is_local_address(ip):
            return default
        try:
            code = self._resolver.resolve_country(ip)
        except Exception:
            # Resolver contract says "never raise"; a buggy one still must not stall auth.
            logger.warning("locale_resolver_raised ip=%s", ip, exc_info=True)
            return default
        return code or default
