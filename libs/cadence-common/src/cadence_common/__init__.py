"""Shared plumbing for Cadence services: config, logging, errors, HTTP middleware."""
