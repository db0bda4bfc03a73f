"""Front-end glue. Modules here carry no widget toolkit code."""
