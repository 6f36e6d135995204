"""Drivers: concrete adapters that talk to external systems."""
