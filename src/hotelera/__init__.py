"""Hotel reservation lifecycle and availability engine."""
