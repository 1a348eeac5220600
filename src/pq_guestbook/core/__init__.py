"""Core primitives: settings, errors, canonical encoding and signature schemes."""
