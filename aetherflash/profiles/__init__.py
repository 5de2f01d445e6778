"""Packaged provisioning profiles."""
