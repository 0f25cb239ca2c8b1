"""Infrastructure - configuration, logging, caching and the content service client."""
