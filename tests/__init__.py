"""Tests for cdn-ips-updater."""
