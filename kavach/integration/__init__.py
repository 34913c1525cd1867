"""
Integration helpers for Kavach.

This package hosts the glue between the offline core and the application:
- trust anchor / identity record caching over a key-value store
- the KYC consent round trip over a peer channel
"""

__all__: list[str] = []
