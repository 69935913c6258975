"""Core of the key translator: schema engine, caching and translation backends."""
