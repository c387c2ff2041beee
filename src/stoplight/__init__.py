"""Stoplight: LeadConnector source connector (calendars, contacts, opportunities)."""

__version__ = "0.1.0"
