"""Registry client and metadata backends."""
