"""Remote table store, topology reconciliation, schema gate and insert path."""
