"""Version 1 of the seller lookup API."""
