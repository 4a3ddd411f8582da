"""Smoke runner that results a live bundle-cdn server over HTTP."""
