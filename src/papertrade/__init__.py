"""Paper-trading portfolio core: option pricing, settlement and price refresh."""
