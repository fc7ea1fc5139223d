"""Models and error kinds shared across rtt."""
