"""Shopping service: per-customer carts, checkout and order events."""
