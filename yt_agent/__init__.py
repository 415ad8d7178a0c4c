"""YouTube transcript retrieval agent: Bright Data scraping, Supabase vector search, Claude tools."""
