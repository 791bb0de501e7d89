"""Jenifesto - cross-source identity lookups

Simple CLI for running the tiered pipeline against one entity.
"""

import argparse
import asyncio

from jenifesto.api.deps import get_runtime
from jenifesto.models.entities import AggregateResult
from jenifesto.models.events import SSEEvent


def print_results(results: dict) -> None:
    aggregate = AggregateResult.model_validate(results)
    for source_type, payload in aggregate.successful.items():
        items = payload if isinstance(payload, list) else [payload]
        for item in items:
            name = item.source_config.name if item.source_config else source_type
            print(f"  [+] {name}: {item.title}")
            print(f"      {item.url}")
    for source_type, failure in aggregate.failed.items():
        print(f"  [-] {source_type}: {failure.message}")
    if aggregate.skipped:
        print(f"  [ ] skipped: {', '.join(aggregate.skipped)}")


def print_event(event: SSEEvent) -> None:
    event_type = event.event.value
    data = event.data

    if event_type == "page_updated":
        page = data.get("page") or {}
        print(f"\n[*] Page: {page.get('title')} ({page.get('primary_id') or 'no entity'})")

    elif event_type == "primary_entity_loaded":
        entity = data.get("entity", {})
        print(f"\n[*] {entity.get('label')} - {entity.get('description') or 'no description'}")
        for identifier in entity.get("identifiers", {}).values():
            print(f"  {identifier.get('label')}: {identifier.get('value')}")

    elif event_type == "secondary_loading":
        print(f"\n[~] Querying {', '.join(data.get('sources', []))}...")

    elif event_type == "secondary_loaded":
        print("\n[*] Same entity elsewhere:")
        print_results(data.get("results", {}))

    elif event_type == "load_error":
        print(f"\n[!] Error: {data.get('error', 'Unknown error')}")


async def run_lookup(qid: str, title: str, search: str | None = None) -> None:
    runtime = get_runtime()
    await runtime.sessions.restore()
    runtime.broadcaster.add_listener(print_event)

    await runtime.navigation.handle_page_loaded(
        title=title,
        url=f"https://en.wikipedia.org/wiki/{title.replace(' ', '_')}",
        primary_id=qid,
    )

    if search:
        print(f"\n[~] Searching for '{search}'...")
        results = await runtime.orchestrator.search_tertiary(
            search, runtime.sessions.satisfied_sources()
        )
        print_results(results.model_dump(mode="json"))


def main():
    parser = argparse.ArgumentParser(description="Jenifesto entity lookup")
    parser.add_argument("--qid", required=True, help="Wikidata item id, e.g. Q42")
    parser.add_argument("--title", "-t", help="Page title (default: the id)")
    parser.add_argument("--search", "-s", help="Also run a keyword search")

    args = parser.parse_args()

    asyncio.run(run_lookup(args.qid, args.title or args.qid, args.search))


if __name__ == "__main__":
    main()
