"""Typed wrappers over the external biodiversity providers.

Each subdirectory is one provider:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    └── {concept}.py      # Dataclasses + parse + fetch functions

Low-level HTTP lives in ``redlist_explorer.services.{name}``. Parsing here
maps every upstream field explicitly and documents the default used when the
provider omits it or returns null, so aggregation code never has to guess.

Fetch functions raise on transport/HTTP errors; callers running inside a
fan-out phase get those folded into ``fanout.Outcome`` failures.
"""
