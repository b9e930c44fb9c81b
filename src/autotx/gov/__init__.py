"""Governance proposals — flags, proposal payload, authority address."""
