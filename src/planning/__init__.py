"""Package classification, baseline filtering and instruction assembly."""
