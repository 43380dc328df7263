"""Statutory social insurance and housing fund contribution calculator."""

__version__ = "0.1.0"
