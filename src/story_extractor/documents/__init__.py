"""Document generation collaborators (Gamma)."""
