"""Social media analyzer: posts, analysis scores, tags and audit log."""
