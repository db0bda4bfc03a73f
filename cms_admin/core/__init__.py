"""GUI-agnostic core: models, ordered view, store contracts and services."""
