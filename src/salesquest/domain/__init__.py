"""Domain layer: incentive model, reconciliation engine and reward ledger."""
