"""Privacy record assembly, caching and refresh policy."""
