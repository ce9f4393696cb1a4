"""WEB API for dbmonitor."""
