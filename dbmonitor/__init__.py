"""dbmonitor package."""
