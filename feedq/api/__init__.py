"""HTTP surface for the activity stream."""
