"""Single-URL and batch orchestration over the fetcher and a content producer."""
