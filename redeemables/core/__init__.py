"""Redeemables core: data model, errors, canonical encoding, journal, events."""
