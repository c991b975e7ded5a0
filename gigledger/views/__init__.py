"""Terminal presentation of read-model snapshots."""
