"""Chart/record merge and the end-to-end update pipeline."""
