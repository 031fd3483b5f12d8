"""Redis failover model, validation, logging, metrics, flags and reconciliation handler."""

__version__ = "1.1.1"