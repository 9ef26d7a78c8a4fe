"""Concrete provider adapters for the interfaces in :mod:`docbot_ingest.interfaces`."""
