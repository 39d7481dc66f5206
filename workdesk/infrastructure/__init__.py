"""Infrastructure: upstream HTTP client and key-value stores."""
