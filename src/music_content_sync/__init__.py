"""Music Content Sync -- turn audio files into Markdown content records for the site.

Core modules:
    config       -- Configuration via pydantic-settings (.env + env vars + kwargs)
    cli          -- Click CLI: sync one audio file or a directory of them
    runner       -- Batch driver. Per-file failures are counted, never raised.
    formats      -- Extension / codec-name format detection
    ffprobe      -- ffprobe subprocess wrapper. extract_metadata returns None on
                    any probe failure (missing binary, timeout, bad JSON).
    frontmatter  -- YAML front-matter split/parse/dump for existing records
    staleness    -- mtime-based regenerate-or-skip decision
    record       -- Merge fresh metadata with preserved fields and write <slug>.md
    dates        -- Loose date -> YYYY-MM-DD normalization
    sanitize     -- Slugs, duration/size formatting, content hashes

Site data:
    catalog      -- Deterministic search index and feed data over the records
    build_state  -- Injected store for stable lastBuildDate values
    cli_index    -- Click CLI writing search.json and music-feed.json
"""
