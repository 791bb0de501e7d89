from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

from jenifesto.models.entities import SourceConfig, SourceResult
from jenifesto.sources import gbif, inaturalist, internet_archive, openlibrary, viaf

IdentifierFetcher = Callable[[str], Awaitable[SourceResult | None]]
KeywordSearcher = Callable[[str, int], Awaitable[list[SourceResult]]]
IdentifierUrlBuilder = Callable[[str], str | None]


@dataclass(frozen=True, slots=True)
class SourceDefinition:
    type: str
    config: SourceConfig
    fetch_by_identifier: IdentifierFetcher
    search_by_keyword: KeywordSearcher | None = None
    identifier_url: IdentifierUrlBuilder | None = None

    @property
    def searchable(self) -> bool:
        return self.search_by_keyword is not None


SOURCE_CONFIG: dict[str, SourceConfig] = {
    "openlibrary": SourceConfig(
        name="OpenLibrary",
        color="#418541",
        icon="https://openlibrary.org/favicon.ico",
    ),
    "internet_archive": SourceConfig(
        name="Internet Archive",
        color="#6b8cae",
        icon="https://archive.org/favicon.ico",
    ),
    "viaf": SourceConfig(
        name="VIAF",
        color="#8b6b4e",
        icon="https://viaf.org/viaf/images/viaf.ico",
    ),
    "gbif": SourceConfig(
        name="GBIF",
        color="#4e9a47",
        icon="https://www.gbif.org/favicon.ico",
    ),
    "inaturalist": SourceConfig(
        name="iNaturalist",
        color="#74ac00",
        icon="https://www.inaturalist.org/favicon.ico",
    ),
}

FALLBACK_COLOR = "#666666"


def get_source_config(source_type: str) -> SourceConfig:
    """Return display metadata for a source, with a neutral fallback."""
    config = SOURCE_CONFIG.get(source_type)
    if config is not None:
        return config
    return SourceConfig(name=source_type, color=FALLBACK_COLOR, icon=None)


class SourceRegistry:
    """Static table of the sources the orchestrator can fan out to."""

    def __init__(self, sources: Iterable[SourceDefinition]):
        self._sources: dict[str, SourceDefinition] = {}
        for source in sources:
            if source.type in self._sources:
                raise ValueError(f"Duplicate source type: {source.type}")
            self._sources[source.type] = source

    def __iter__(self):
        return iter(self._sources.values())

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, source_type: object) -> bool:
        return source_type in self._sources

    def types(self) -> list[str]:
        return list(self._sources)

    def get(self, source_type: str) -> SourceDefinition | None:
        return self._sources.get(source_type)

    def source_config(self, source_type: str) -> SourceConfig:
        source = self._sources.get(source_type)
        if source is not None:
            return source.config
        return get_source_config(source_type)

    def identifier_url(self, source_type: str, value: str) -> str | None:
        source = self._sources.get(source_type)
        if source is None or source.identifier_url is None:
            return None
        return source.identifier_url(value)


def default_registry() -> SourceRegistry:
    return SourceRegistry(
        [
            SourceDefinition(
                type="openlibrary",
                config=SOURCE_CONFIG["openlibrary"],
                fetch_by_identifier=openlibrary.fetch_by_olid,
                search_by_keyword=openlibrary.search,
                identifier_url=openlibrary.identifier_url,
            ),
            SourceDefinition(
                type="internet_archive",
                config=SOURCE_CONFIG["internet_archive"],
                fetch_by_identifier=internet_archive.fetch_item,
                search_by_keyword=internet_archive.search,
                identifier_url=internet_archive.identifier_url,
            ),
            SourceDefinition(
                type="viaf",
                config=SOURCE_CONFIG["viaf"],
                fetch_by_identifier=viaf.fetch_record,
                identifier_url=viaf.identifier_url,
            ),
            SourceDefinition(
                type="gbif",
                config=SOURCE_CONFIG["gbif"],
                fetch_by_identifier=gbif.fetch_species,
                search_by_keyword=gbif.search,
                identifier_url=gbif.identifier_url,
            ),
            SourceDefinition(
                type="inaturalist",
                config=SOURCE_CONFIG["inaturalist"],
                fetch_by_identifier=inaturalist.fetch_taxon,
                search_by_keyword=inaturalist.search,
                identifier_url=inaturalist.identifier_url,
            ),
        ]
    )
