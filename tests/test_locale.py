"""Tests for the locale cache and GeoIP resolver."""

import pytest

from marquee.core.locale import GeoIPCountryResolver, LocaleCache, is_local_address, strip_port


class TestStripPort:
    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            ("81.2.69.142:27005", "81.2.69.142"),
            ("81.2.69.142", "81.2.69.142"),
            ("[2001:db8::1]:27005", "2001:db8::1"),
            ("2001:db8::1", "2001:db8::1"),
            ("  8.8.8.8:1 ", "8.8.8.8"),
        ],
    )
    def test_strip(self, address: str, expected: str) -> None:
        assert strip_port(address) == expected


class TestIsLocal:
    def test_loopback(self) -> None:
        assert is_local_address("127.0.0.1")
        assert is_local_address("::1")
        assert is_local_address("0.0.0.0")

    def test_public(self) -> None:
        assert not is_local_address("8.8.8.8")

    def test_garbage_is_not_local(self) -> None:
        assert not is_local_address("loopback")


class TestLocaleCache:
    def test_authorize_stores_country(self, resolver) -> None:
        cache = LocaleCache(resolver, default_locale="US")
        assert cache.on_authorize(1, "95.173.136.70:27005") == "RU"
        assert cache.lookup(1) == "RU"
        assert resolver.lookups == ["95.173.136.70"]

    def test_loopback_skips_lookup(self, resolver) -> None:
        cache = LocaleCache(resolver, default_locale="US")
        assert cache.on_authorize(1, "127.0.0.1:27005") == "US"
        assert resolver.lookups == []

    def test_unknown_address_uses_default(self, resolver) -> None:
        cache = LocaleCache(resolver, default_locale="DE")
        assert cache.on_authorize(1, "203.0.113.9") == "DE"

    def test_absent_entry_reads_as_default(self, resolver) -> None:
        cache = LocaleCache(resolver, default_locale="US")
        assert cache.lookup(404) == "US"
        assert cache.lookup(None) == "US"

    def test_disconnect_evicts(self, resolver) -> None:
        cache = LocaleCache(resolver, default_locale="US")
        cache.on_authorize(1, "81.2.69.142")
        assert 1 in cache
        cache.on_disconnect(1)
        cache.on_disconnect(1)
        assert 1 not in cache
        assert cache.lookup(1) == "US"

    def test_raising_resolver_degrades(self) -> None:
        class Broken:
            def resolve_country(self, ip: str) -> str | None:
                raise RuntimeError("db on fire")

        cache = LocaleCache(Broken(), default_locale="US")
        assert cache.on_authorize(7, "8.8.8.8") == "US"
        assert cache.lookup(7) == "US"


class TestGeoIPCountryResolver:
    def test_missing_database_returns_none(self, tmp_path) -> None:
        resolver = GeoIPCountryResolver(tmp_path / "nope.mmdb")
        assert resolver.resolve_country("8.8.8.8") is None
        resolver.close()

    def test_corrupt_database_returns_none(self, tmp_path) -> None:
        path = tmp_path / "broken.mmdb"
        path.write_bytes(b"definitely not a maxmind database")
        resolver = GeoIPCountryResolver(path)
        assert resolver.resolve_country("8.8.8.8") is None
