"""Shared helpers for the climate forecasting course."""
