"""Fahrenheit/Celsius conversion."""

from __future__ import annotations


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    """Convert a Fahrenheit reading to Celsius."""
    return (fahrenheit - 32) * 5 / 9


def celsius_to_fahrenheit(celsius: float) -> float:
    """Convert a Celsius value to Fahrenheit."""
    return celsius * 9 / 5 + 32
