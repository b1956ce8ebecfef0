"""Web API for the assessment engine."""
