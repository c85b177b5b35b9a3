"""Git Genie: browse your GitHub repositories through a Supabase-backed proxy."""
