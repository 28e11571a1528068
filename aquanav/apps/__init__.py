"""Business applications: one package per area, each with its own router."""
