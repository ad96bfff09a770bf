"""Ticker sentiment tracker service."""
