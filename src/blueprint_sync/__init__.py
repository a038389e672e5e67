"""Synchronise AI-assistant configuration files with a remote blueprint catalog."""

__version__ = "0.4.0"
