"""site_kb.parser: typed access to parsed HTML documents."""
