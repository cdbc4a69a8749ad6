"""Bill ingestion: decoding, provider adapters and rule tables."""
