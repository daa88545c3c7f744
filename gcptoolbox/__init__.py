"""Helpers for Google Cloud metadata, Cloud Tasks, IAP users, Dataflow templates, metrics scopes and IAM checks."""

__version__ = "0.1.0"