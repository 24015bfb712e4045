"""App Store privacy page extraction: browser steps and pure DOM parsing."""
