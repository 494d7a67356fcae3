"""Portal services: auth context, search, booking and per-client state."""
