"""Appointment scheduling backend for grooming salons."""

__version__ = "0.1.0"
