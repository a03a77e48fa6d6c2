"""Storage layer: async engine, ORM model, and schema bootstrap."""
