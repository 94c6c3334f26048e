"""Core domain: settings, database layer and models."""
