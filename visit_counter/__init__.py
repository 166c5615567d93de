"""Visit counter service: Redis fast-path counter with a durable visit ledger."""

__version__ = "1.0.0"
