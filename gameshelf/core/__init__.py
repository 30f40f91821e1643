"""Core primitives shared by the catalog, ledger, and session layers (errors and intents).

Kept free of FastAPI concerns so it can be reused by API routes, adapters, and tests.
"""
