"""Roster provider implementations."""
