"""Configuration: settings, API key storage and credential providers."""
