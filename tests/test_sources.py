from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from jenifesto.services.errors import EntityFetchError, SourceFetchError
from jenifesto.sources import gbif, inaturalist, internet_archive, openlibrary, viaf, wikidata
from jenifesto.sources.registry import default_registry, get_source_config


class FakeResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeClient:
    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, dict]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def fake_http(payload=None, status_code: int = 200, error: Exception | None = None):
    client = FakeClient(FakeResponse(payload, status_code), error=error)
    return client, patch("jenifesto.sources.http.httpx.AsyncClient", return_value=client)


class TestHttp:
    @pytest.mark.asyncio
    async def test_404_is_not_found(self):
        client, patched = fake_http({}, status_code=404)
        with patched:
            assert await gbif.fetch_species("1") is None

    @pytest.mark.asyncio
    async def test_server_error_raises_source_fetch_error(self):
        client, patched = fake_http({}, status_code=503)
        with patched, pytest.raises(SourceFetchError, match="HTTP 503"):
            await gbif.fetch_species("1")

    @pytest.mark.asyncio
    async def test_timeout_raises_source_fetch_error(self):
        client, patched = fake_http(error=httpx.ReadTimeout("slow"))
        with patched, pytest.raises(SourceFetchError, match="timed out"):
            await inaturalist.fetch_taxon("42")

    @pytest.mark.asyncio
    async def test_invalid_json_raises_source_fetch_error(self):
        client, patched = fake_http(ValueError("bad json"))
        with patched, pytest.raises(SourceFetchError, match="invalid JSON"):
            await gbif.search("fox", 3)


class TestOpenLibrary:
    @pytest.mark.asyncio
    async def test_fetch_author(self):
        payload = {"name": "Douglas Adams", "bio": {"type": "/type/text", "value": "English  author"}, "photos": [123]}
        client, patched = fake_http(payload)
        with patched:
            result = await openlibrary.fetch_by_olid("OL272947A")

        assert client.calls[0][0] == "https://openlibrary.org/authors/OL272947A.json"
        assert result.title == "Douglas Adams"
        assert result.description == "English author"
        assert result.url == "https://openlibrary.org/authors/OL272947A"
        assert result.thumbnail == "https://covers.openlibrary.org/a/id/123-M.jpg"

    @pytest.mark.asyncio
    async def test_unrecognized_olid_raises(self):
        with pytest.raises(SourceFetchError):
            await openlibrary.fetch_by_olid("12345")

    @pytest.mark.asyncio
    async def test_search_maps_docs(self):
        payload = {
            "docs": [
                {"key": "/works/OL1W", "title": "The Fox", "author_name": ["A", "B"], "first_publish_year": 1990, "cover_i": 7},
                {"title": "no key"},
            ]
        }
        client, patched = fake_http(payload)
        with patched:
            results = await openlibrary.search("fox", 5)

        assert len(results) == 1
        assert results[0].url == "https://openlibrary.org/works/OL1W"
        assert results[0].description == "A, B · 1990"
        assert client.calls[0][1]["params"]["limit"] == 5

    def test_identifier_url(self):
        assert openlibrary.identifier_url("OL1M") == "https://openlibrary.org/books/OL1M"
        assert openlibrary.identifier_url("bogus") is None


class TestInternetArchive:
    @pytest.mark.asyncio
    async def test_unknown_item_is_not_found(self):
        client, patched = fake_http({})
        with patched:
            assert await internet_archive.fetch_item("nope") is None

    @pytest.mark.asyncio
    async def test_fetch_item(self):
        client, patched = fake_http({"metadata": {"title": ["Hitchhiker"], "description": "A radio play"}})
        with patched:
            result = await internet_archive.fetch_item("hhgttg")

        assert result.title == "Hitchhiker"
        assert result.url == "https://archive.org/details/hhgttg"
        assert result.thumbnail == "https://archive.org/services/img/hhgttg"

    @pytest.mark.asyncio
    async def test_search(self):
        payload = {"response": {"docs": [{"identifier": "a1", "title": "One"}, {"identifier": "a2"}]}}
        client, patched = fake_http(payload)
        with patched:
            results = await internet_archive.search("fox", 1)

        assert [r.title for r in results] == ["One"]


class TestViaf:
    @pytest.mark.asyncio
    async def test_single_heading_object(self):
        payload = {"mainHeadings": {"data": {"text": "Adams, Douglas, 1952-2001"}}, "nameType": "Personal"}
        client, patched = fake_http(payload)
        with patched:
            result = await viaf.fetch_record("113230702")

        assert result.title == "Adams, Douglas, 1952-2001"
        assert result.description == "Personal name authority record"
        assert result.url == "https://viaf.org/viaf/113230702/"

    @pytest.mark.asyncio
    async def test_invalid_id_raises(self):
        with pytest.raises(SourceFetchError):
            await viaf.fetch_record("abc")


class TestGbifAndINaturalist:
    @pytest.mark.asyncio
    async def test_gbif_species(self):
        payload = {"key": 5219243, "canonicalName": "Vulpes vulpes", "rank": "SPECIES", "kingdom": "Animalia"}
        client, patched = fake_http(payload)
        with patched:
            result = await gbif.fetch_species("5219243")

        assert result.title == "Vulpes vulpes"
        assert result.description == "Species · Animalia"
        assert result.url == "https://www.gbif.org/species/5219243"

    @pytest.mark.asyncio
    async def test_inaturalist_taxon(self):
        payload = {
            "results": [
                {
                    "id": 42069,
                    "name": "Vulpes vulpes",
                    "preferred_common_name": "Red Fox",
                    "rank": "species",
                    "default_photo": {"medium_url": "https://img/fox.jpg"},
                }
            ]
        }
        client, patched = fake_http(payload)
        with patched:
            result = await inaturalist.fetch_taxon("42069")

        assert result.title == "Red Fox"
        assert result.description == "Species Vulpes vulpes"
        assert result.thumbnail == "https://img/fox.jpg"

    @pytest.mark.asyncio
    async def test_inaturalist_empty_results_is_not_found(self):
        client, patched = fake_http({"results": []})
        with patched:
            assert await inaturalist.fetch_taxon("1") is None


class TestWikidata:
    PAYLOAD = {
        "entities": {
            "Q42": {
                "id": "Q42",
                "labels": {"en": {"language": "en", "value": "Douglas Adams"}},
                "descriptions": {"en": {"language": "en", "value": "English writer"}},
                "claims": {
                    "P214": [
                        {"rank": "deprecated", "mainsnak": {"datavalue": {"value": "999"}}},
                        {"rank": "normal", "mainsnak": {"datavalue": {"value": "113230702"}}},
                    ],
                    "P648": [{"rank": "normal", "mainsnak": {"datavalue": {"value": "OL272947A"}}}],
                    "P31": [{"rank": "normal", "mainsnak": {"datavalue": {"value": {"id": "Q5"}}}}],
                },
            }
        }
    }

    @pytest.mark.asyncio
    async def test_fetch_entity_extracts_known_identifiers(self):
        client, patched = fake_http(self.PAYLOAD)
        with patched:
            entity = await wikidata.fetch_entity("Q42")

        assert entity.label == "Douglas Adams"
        assert entity.description == "English writer"
        assert set(entity.identifiers) == {"viaf", "openlibrary"}
        assert entity.identifiers["viaf"].value == "113230702"
        assert entity.identifiers["openlibrary"].label == "Open Library ID"

    @pytest.mark.asyncio
    async def test_invalid_qid(self):
        with pytest.raises(EntityFetchError):
            await wikidata.fetch_entity("42")

    @pytest.mark.asyncio
    async def test_missing_entity(self):
        client, patched = fake_http({}, status_code=404)
        with patched, pytest.raises(EntityFetchError, match="not found"):
            await wikidata.fetch_entity("Q42")

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_entity_fetch_error(self):
        client, patched = fake_http(error=httpx.ConnectError("refused"))
        with patched, pytest.raises(EntityFetchError):
            await wikidata.fetch_entity("Q42")

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        client, patched = fake_http({"entities": {}})
        with patched, pytest.raises(EntityFetchError, match="Malformed"):
            await wikidata.fetch_entity("Q42")


def test_default_registry_has_five_sources():
    registry = default_registry()

    assert registry.types() == ["openlibrary", "internet_archive", "viaf", "gbif", "inaturalist"]
    assert [s.type for s in registry if s.searchable] == [
        "openlibrary",
        "internet_archive",
        "gbif",
        "inaturalist",
    ]
    assert registry.identifier_url("gbif", "5219243") == "https://www.gbif.org/species/5219243"


def test_source_config_fallback():
    config = get_source_config("mystery")

    assert config.name == "mystery"
    assert config.color == "#666666"
    assert config.icon is None
