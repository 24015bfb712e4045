"""iTunes chart feed and Lookup API clients."""
