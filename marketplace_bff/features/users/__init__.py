"""Marketplace users (buyers and sellers)."""
