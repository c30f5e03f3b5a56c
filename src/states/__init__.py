"""The twelve agent states. The registry lives in states.registry."""
