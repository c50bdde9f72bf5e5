"""Record Relay data service: owns the record collection in Redis."""
