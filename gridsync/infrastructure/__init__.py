"""Infrastructure adapters: storage, HTTP, auth, broadcast and wiring."""
