"""Building blocks for database replication connectors: streams, catalogs, state, schema evolution, writer pools and commands."""

__version__ = "0.1.0"