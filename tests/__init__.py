"""Tests for dbmonitor."""
