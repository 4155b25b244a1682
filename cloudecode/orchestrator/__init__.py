"""Request state machine and orchestration."""
