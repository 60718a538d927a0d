"""Input adapters and field codecs for CNAB ingestion."""
