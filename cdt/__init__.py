"""Reconcile a catalogue of developer tools against the host's package managers."""

__version__ = "0.1.0"
