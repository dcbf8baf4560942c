"""
Prefect flow that loads and validates every taxon's snapshot files.

Run it after dropping new ``redlist-*.json`` / ``gbif-*.csv`` exports into the
data directory: it reports which taxa have usable data and how many species
and occurrence rows each one carries, without starting the API.

Run locally:
    python -m redlist_explorer.flows.warm

Run with Prefect dashboard:
    prefect server start &
    python -m redlist_explorer.flows.warm
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from prefect import flow, task

from redlist_explorer.config import get_settings
from redlist_explorer.reference.taxa import TAXA
from redlist_explorer.store import SnapshotStore


@task(name="load-snapshot")
def load_snapshot(store: SnapshotStore, taxon_id: str) -> dict[str, Any]:
    """Reread one taxon's snapshot and occurrence table and summarise them."""
    store.invalidate(taxon_id)
    snapshot = store.get_snapshot(taxon_id)
    table_path = store.occurrence_table_path(taxon_id)
    rows = store.get_occurrences(taxon_id)
    assessed = len(snapshot.species) if snapshot else 0
    with_category = sum(1 for r in rows if r.redlist_category)
    return {
        "available": snapshot is not None,
        "species": assessed,
        "fetched_at": snapshot.metadata.fetched_at if snapshot else None,
        "occurrence_rows": len(rows),
        "rows_with_category": with_category,
        "occurrence_table": str(table_path) if table_path else None,
    }


@flow(name="warm-snapshots", log_prints=True)
def warm_snapshots(
    data_dir: Path | None = None,
    store: SnapshotStore | None = None,
) -> dict[str, dict[str, Any]]:
    """
    Load every configured taxon from disk.

    Pass a long-lived ``store`` to refresh it in place; otherwise a fresh one
    is built over ``data_dir``. Returns per-taxon summaries keyed by taxon id.
    """
    if store is None:
        data_dir = data_dir if data_dir is not None else get_settings().data_dir
        store = SnapshotStore(data_dir)
    print(f"Loading snapshots from {store.base}...")

    results: dict[str, dict[str, Any]] = {}
    for taxon in TAXA:
        summary = load_snapshot(store, taxon.id)
        results[taxon.id] = summary
        if summary["available"]:
            print(
                f"  {taxon.id}: {summary['species']} assessed species, "
                f"{summary['occurrence_rows']} occurrence rows "
                f"({summary['rows_with_category']} with a category)"
            )
        else:
            print(f"  {taxon.id}: no snapshot ({summary['occurrence_rows']} occurrence rows)")
        if summary["occurrence_table"] is None:
            print(f"    no occurrence table for {taxon.id}")

    available = sum(1 for s in results.values() if s["available"])
    print(f"{available}/{len(results)} taxa available.")
    return results


if __name__ == "__main__":
    result = warm_snapshots()
    print(f"Flow complete: {len(result)} taxa checked")
