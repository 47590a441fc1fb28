"""Audora: a social audio-sharing API."""

__version__ = "0.1.0"
