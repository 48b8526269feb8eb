"""Nearby medical facility discovery and safety triage API."""
