"""FiosFon: App Store privacy label extraction and scoring."""

__version__ = "0.1.0"
