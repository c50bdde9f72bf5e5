"""Record Relay API gateway: forwards record calls to the data service."""
