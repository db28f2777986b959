"""Tests for the resourcepack command line tool."""
