"""Remote explanation service: transport, prompts, parsing and classification."""
