"""Integration tests for single-address lookups through the client.

Requests go through the real HTTP fetcher into an httpx.MockTransport.
"""

import json

import pytest

from iplookup.client import BaseIPinfoClient, IPinfo, IPinfoCore, IPinfoLite, IPinfoPlus
from iplookup.config import settings
from iplookup.exceptions import APIError, RequestQuotaExceededError
from iplookup.utils.cache import DefaultCache
from iplookup.utils.metrics import MAX_TIMING_SAMPLES


class TestClientConstruction:
    def test_access_token(self):
        assert IPinfo("123").access_token == "123"

    def test_custom_cache(self):
        cache = DefaultCache(maxsize=3, ttl=3)
        client = IPinfo("tok", cache=cache)

        assert client.cache is cache
        assert client.dispatcher.cache is cache

    def test_default_cache_settings(self):
        client = IPinfo()

        assert client.cache.maxsize == settings.cache_maxsize
        assert client.cache.ttl == settings.cache_ttl_seconds

    def test_custom_cache_settings(self):
        client = IPinfo("tok", cache_maxsize=100, cache_ttl=11)

        assert client.cache.maxsize == 100
        assert client.cache.ttl == 11

    def test_each_client_owns_its_cache(self):
        assert IPinfo().cache is not IPinfo().cache

    def test_base_client_is_abstract(self):
        with pytest.raises(TypeError):
            BaseIPinfoClient("tok")


class TestGetDetails:
    """Test IPinfo.get_details()."""

    async def test_lookup(self, client, fake_api):
        res = await client.get_details("8.8.8.8")

        assert res.ip == "8.8.8.8"
        assert res.hostname == "dns.google"
        assert res.city == "Mountain View"
        assert res.country_name == "United States"
        assert res.is_eu is False
        assert res.country_flag["emoji"] == "🇺🇸"
        assert res.country_currency == {"code": "USD", "symbol": "$"}
        assert res.continent == {"code": "NA", "name": "North America"}
        assert res.latitude == "38.0088"
        assert res.longitude == "-122.1175"
        assert len(fake_api.requests) == 1
        assert fake_api.requests[0].headers["authorization"] == "Bearer test-token"

    async def test_repeated_lookups_hit_cache(self, client, fake_api):
        for _ in range(5):
            res = await client.get_details("8.8.8.8")
            assert res.hostname == "dns.google"

        assert len(fake_api.requests) == 1
        assert client.metrics.count("cache_hits") == 4
        assert client.metrics.count("cache_misses") == 1

    async def test_ipv6_notations_share_cache_entry(self, client, fake_api):
        first = await client.get_details("2606:4700:4700::1111")
        second = await client.get_details("2606:4700:4700:0:0:0:0:1111")

        assert len(fake_api.requests) == 1
        assert first.city == second.city == "San Francisco"
        # Each caller sees the notation it asked for
        assert second.ip == "2606:4700:4700:0:0:0:0:1111"

    async def test_own_address_lookup(self, client, fake_api):
        res = await client.get_details()

        assert res.ip == "8.8.8.8"
        assert fake_api.requests[0].url.host == "ipinfo.io"
        assert fake_api.requests[0].url.path == "/"

    async def test_raw_request_details(self, client):
        raw = await client.get_request_details("8.8.8.8")

        assert raw["hostname"] == "dns.google"
        assert "country_name" not in raw


class TestBogonLookups:
    """Bogon addresses never reach the network."""

    @pytest.mark.parametrize("ip", ["127.0.0.1", "2002:7f00::", "10.0.0.1"])
    async def test_bogon_standard(self, client, fake_api, ip):
        res = await client.get_details(ip)

        assert res.ip == ip
        assert res.bogon is True
        assert fake_api.requests == []
        assert client.metrics.count("bogon_lookups") == 1

    @pytest.mark.parametrize("client_cls", [IPinfoLite, IPinfoCore, IPinfoPlus])
    async def test_bogon_other_tiers(self, transport, client_cls):
        async with client_cls("tok", transport=transport) as tier_client:
            res = await tier_client.get_details("127.0.0.1")

        assert res.ip == "127.0.0.1"
        assert res.bogon is True

    async def test_bogon_without_initialize(self, fake_api, transport):
        client = IPinfo("tok", transport=transport)
        res = await client.get_details("192.168.1.1")

        assert res.bogon is True
        assert not client.is_ready()


class TestLookupFailures:
    """Single lookups surface typed errors."""

    async def test_bad_ip(self, client):
        with pytest.raises(APIError) as exc_info:
            await client.get_details("fake_ip")

        assert exc_info.value.status == 404

    async def test_quota_exceeded(self, client, fake_api):
        fake_api.status_override = 429

        with pytest.raises(RequestQuotaExceededError):
            await client.get_details("8.8.8.8")

    async def test_failed_lookup_not_cached(self, client, fake_api):
        fake_api.status_override = 503
        with pytest.raises(APIError):
            await client.get_details("8.8.8.8")

        fake_api.status_override = None
        res = await client.get_details("8.8.8.8")

        assert res.hostname == "dns.google"
        assert len(fake_api.requests) == 2


class TestTierClients:
    async def test_lite_lookup(self, transport, fake_api):
        fake_api.details["8.8.8.8"] = {
            "ip": "8.8.8.8",
            "asn": "AS15169",
            "as_name": "Google LLC",
            "as_domain": "google.com",
            "country_code": "US",
            "country": "United States",
            "continent_code": "NA",
            "continent": "North America",
        }
        async with IPinfoLite("tok", transport=transport) as lite:
            res = await lite.get_details("8.8.8.8")
            me = await lite.get_details()

        assert str(fake_api.requests[0].url) == "https://api.ipinfo.io/lite/8.8.8.8"
        assert str(fake_api.requests[1].url) == "https://api.ipinfo.io/lite/me"
        assert res.as_name == "Google LLC"
        assert res.country_name == "United States"
        assert res.country_currency["code"] == "USD"
        assert res.bogon is None
        assert me.ip == "8.8.8.8"

    async def test_core_lookup(self, transport, fake_api):
        fake_api.details["8.8.8.8"] = {
            "ip": "8.8.8.8",
            "geo": {"city": "Mountain View", "country_code": "US", "latitude": 38.0088, "longitude": -122.1175},
            "as": {"asn": "AS15169", "name": "Google LLC", "domain": "google.com", "type": "hosting"},
            "is_anycast": True,
            "is_hosting": True,
            "is_mobile": False,
        }
        async with IPinfoCore("tok", transport=transport) as core:
            res = await core.get_details("8.8.8.8")

        assert str(fake_api.requests[0].url) == "https://api.ipinfo.io/lookup/8.8.8.8"
        assert res.geo.country_name == "United States"
        assert res.geo.is_eu is False
        assert res.geo.latitude == pytest.approx(38.0088)
        assert res.asn.domain == "google.com"
        assert res.is_mobile is False


class TestMapAndStatus:
    async def test_get_map_url(self, client, fake_api):
        url = await client.get_map_url(["8.8.8.8\n", "1.1.1.1"])

        assert url.startswith("https://ipinfo.io/tools/map/")
        request = fake_api.requests[0]
        assert request.url.params["cli"] == "1"
        assert json.loads(request.content) == ["8.8.8.8", "1.1.1.1"]

    async def test_status(self, client):
        await client.get_details("8.8.8.8")
        status = client.get_status()

        assert status["status"] == "ready"
        assert status["cache"]["size"] == 1
        assert status["cache"]["maxsize"] == settings.cache_maxsize

    async def test_shutdown(self, transport):
        client = IPinfo("tok", transport=transport)
        await client.initialize()
        await client.shutdown()

        assert client.get_status()["status"] == "not_ready"


async def test_long_running_client_keeps_bounded_timings(make_fetcher):
    ips = [f"11.0.{i // 256}.{i % 256}" for i in range(MAX_TIMING_SAMPLES + 500)]
    fetcher = make_fetcher({ip: {"ip": ip} for ip in ips})
    client = IPinfo("tok", fetcher=fetcher, cache_maxsize=1)

    for ip in ips:
        await client.get_request_details(ip)

    metrics = client.get_metrics()
    assert client.cache.size() == 1
    assert metrics["counters"]["requests_total"] == len(ips)
    assert metrics["timings"]["fetch_ms"]["count"] == MAX_TIMING_SAMPLES
