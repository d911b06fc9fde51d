"""HTTP blueprints for the records API."""
