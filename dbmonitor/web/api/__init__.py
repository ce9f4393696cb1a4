"""dbmonitor API package."""
