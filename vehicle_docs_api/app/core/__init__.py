"""Configuration, logging, security and storage adapters."""
