"""Background service: coordinator, host adapters and the command surface."""
